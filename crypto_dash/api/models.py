"""
API-specific response models for the dashboard.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..market_data.models import AssetSummary, PricePoint, SortKey

ListStatus = Literal["idle", "pending", "succeeded", "failed"]


class CoinListResponse(BaseModel):
    """The list view: fetch status, options and the filtered grid."""

    model_config = ConfigDict(use_enum_values=True)

    status: Annotated[ListStatus, Field(description="List fetch state")]
    message: Annotated[
        str | None, Field(description="Failure message to show verbatim")
    ] = None
    limit: Annotated[int, Field(description="Number of assets fetched")]
    sort: Annotated[SortKey, Field(description="Applied ordering")]
    filter: Annotated[str, Field(description="Applied name or symbol filter")]
    coins: Annotated[list[AssetSummary], Field(description="View list")]
    is_empty: Annotated[bool, Field(description="True when nothing matches")]
    dropped_records: Annotated[
        int, Field(ge=0, description="Malformed records skipped while decoding")
    ] = 0


class PriceSeriesResponse(BaseModel):
    """Price history for the chart."""

    coin_id: Annotated[str, Field(description="Asset id")]
    prices: Annotated[list[PricePoint], Field(description="Chronological points")]


class ErrorResponse(BaseModel):
    """Model for error responses."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    error: Annotated[str, Field(description="Error code")]
    message: Annotated[str, Field(description="Human-readable error message")]
