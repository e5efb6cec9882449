"""
Data models for the market-data pipeline.
"""

from datetime import datetime
from enum import Enum, StrEnum
from typing import Annotated, Final, Literal

from pydantic import BaseModel, ConfigDict, Field

ResultLimit = Literal[5, 10, 20, 50, 100]


class Unavailable(Enum):
    """Marker for a value the upstream payload did not provide."""

    UNAVAILABLE = "unavailable"

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE: Final[Unavailable] = Unavailable.UNAVAILABLE

Amount = float | Unavailable
Timestamp = datetime | Unavailable


class SortKey(StrEnum):
    """Orderings offered by the sort selector."""

    MARKET_CAP_DESC = "market_cap_desc"
    MARKET_CAP_ASC = "market_cap_asc"
    PRICE_DESC = "price_desc"
    PRICE_ASC = "price_asc"
    CHANGE_DESC = "change_desc"
    CHANGE_ASC = "change_asc"


class QueryOptions(BaseModel):
    """User-chosen options driving the list view."""

    model_config = ConfigDict(frozen=True)

    result_limit: Annotated[
        ResultLimit, Field(description="Number of assets to fetch")
    ] = 10
    sort_key: Annotated[SortKey, Field(description="Local ordering")] = (
        SortKey.MARKET_CAP_DESC
    )
    filter_text: Annotated[str, Field(description="Name or symbol filter")] = ""


class RequestDescriptor(BaseModel):
    """A concrete upstream GET request."""

    model_config = ConfigDict(frozen=True)

    url: Annotated[str, Field(description="Absolute endpoint URL")]
    params: Annotated[dict[str, str], Field(description="Query parameters")] = {}


class AssetSummary(BaseModel):
    """One row of the market list."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: Annotated[str, Field(min_length=1, description="Stable asset key")]
    symbol: Annotated[str, Field(description="Ticker symbol")]
    name: Annotated[str, Field(description="Display name")]
    image_url: Annotated[str, Field(alias="image", description="Logo URL")] = ""
    current_price: Annotated[float, Field(description="Price in USD")]
    market_cap: Annotated[float, Field(description="Market cap in USD")]
    price_change_pct_24h: Annotated[
        float | None,
        Field(
            alias="price_change_percentage_24h",
            description="24h price change in percent",
        ),
    ] = None


class PriceExtreme(BaseModel):
    """All-time high or low with the date it was reached."""

    model_config = ConfigDict(frozen=True)

    value: Amount = UNAVAILABLE
    date: Timestamp = UNAVAILABLE


class AssetMarketData(BaseModel):
    """Market figures shown on the detail view."""

    model_config = ConfigDict(frozen=True)

    current_price: Amount = UNAVAILABLE
    market_cap: Amount = UNAVAILABLE
    high_24h: Amount = UNAVAILABLE
    low_24h: Amount = UNAVAILABLE
    price_change_24h: Amount = UNAVAILABLE
    price_change_pct_24h: Amount = UNAVAILABLE
    circulating_supply: Amount = UNAVAILABLE
    total_supply: Amount = UNAVAILABLE
    all_time_high: PriceExtreme = PriceExtreme()
    all_time_low: PriceExtreme = PriceExtreme()
    last_updated: Timestamp = UNAVAILABLE


class AssetLinks(BaseModel):
    """External links for an asset."""

    model_config = ConfigDict(frozen=True)

    homepage_urls: tuple[str, ...] = ()
    blockchain_explorer_urls: tuple[str, ...] = ()


class AssetDetail(BaseModel):
    """Normalized single asset detail."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(description="Stable asset key")]
    name: Annotated[str, Field(description="Display name")]
    symbol: Annotated[str, Field(description="Ticker symbol")]
    market_cap_rank: Annotated[int | None, Field(description="Rank by market cap")]
    description_summary: Annotated[
        str, Field(description="First sentence of the description")
    ] = ""
    image_url_large: Annotated[str, Field(description="Large logo URL")] = ""
    market_data: AssetMarketData = AssetMarketData()
    links: AssetLinks = AssetLinks()
    categories: tuple[str, ...] = ()


class PricePoint(BaseModel):
    """A single point of the price-history chart."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: Annotated[int, Field(description="Epoch milliseconds")]
    price: Annotated[float, Field(description="Price in USD")]


class ViewList(BaseModel):
    """Filtered and sorted summaries ready for the grid."""

    model_config = ConfigDict(frozen=True)

    summaries: tuple[AssetSummary, ...] = ()
    is_empty: bool = True
