"""
Request construction for the upstream market-data API.
"""

from typing import Final, get_args
from urllib.parse import quote

from .errors import InvalidOptionError
from .models import RequestDescriptor, ResultLimit
from .settings import market_data_settings

RESULT_LIMITS: Final[tuple[int, ...]] = get_args(ResultLimit)
VS_CURRENCY: Final[str] = "usd"
TRANSPORT_ORDER: Final[str] = "market_cap_desc"
FIRST_PAGE: Final[int] = 1


def validate_result_limit(result_limit: object) -> int:
    """Return ``result_limit`` if it is one of the supported page sizes."""
    if (
        isinstance(result_limit, bool)
        or not isinstance(result_limit, int)
        or result_limit not in RESULT_LIMITS
    ):
        raise InvalidOptionError(
            f"Result limit must be one of {list(RESULT_LIMITS)}, got {result_limit!r}"
        )
    return result_limit


def build_list_request(
    result_limit: int, base_url: str | None = None
) -> RequestDescriptor:
    """
    Build the market list request for the given page size.

    The upstream ordering is always market cap descending; any other ordering
    is applied locally after the fetch.

    Raises:
        InvalidOptionError: If ``result_limit`` is not a supported page size
    """
    limit = validate_result_limit(result_limit)
    return RequestDescriptor(
        url=base_url or market_data_settings.markets_api_url,
        params={
            "vs_currency": VS_CURRENCY,
            "order": TRANSPORT_ORDER,
            "per_page": str(limit),
            "page": str(FIRST_PAGE),
            "sparkline": "false",
        },
    )


def _asset_url(asset_id: str, base_url: str | None) -> str:
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise InvalidOptionError(f"Asset id must be a non-empty string, got {asset_id!r}")
    base = (base_url or market_data_settings.coin_api_url).rstrip("/")
    return f"{base}/{quote(asset_id.strip(), safe='')}"


def build_detail_request(
    asset_id: str, base_url: str | None = None
) -> RequestDescriptor:
    """Build the single asset detail request."""
    return RequestDescriptor(url=_asset_url(asset_id, base_url))


def build_series_request(
    asset_id: str, days: int | None = None, base_url: str | None = None
) -> RequestDescriptor:
    """Build the price-history request for the last ``days`` days."""
    days = market_data_settings.series_days if days is None else days
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise InvalidOptionError(f"Days must be a positive integer, got {days!r}")
    return RequestDescriptor(
        url=f"{_asset_url(asset_id, base_url)}/market_chart",
        params={"vs_currency": VS_CURRENCY, "days": str(days)},
    )
