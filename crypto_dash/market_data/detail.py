"""
Normalization of the raw single asset payload into ``AssetDetail``.

The upstream object is loosely typed and many of its nested fields are
optional. Identity fields are required; every other field degrades to an
empty value or to ``UNAVAILABLE`` rather than to a number that looks real.
"""

import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Final

from .errors import MalformedPayloadError
from .models import (
    UNAVAILABLE,
    Amount,
    AssetDetail,
    AssetLinks,
    AssetMarketData,
    PriceExtreme,
    Timestamp,
)
from .query import VS_CURRENCY

REQUIRED_FIELDS: Final[tuple[str, ...]] = ("id", "name", "symbol")
DESCRIPTION_LANGUAGE: Final[str] = "en"

_SENTENCE_END = re.compile(r"[.!?]")


def _in_currency(value: Any) -> Any:
    """Pick the USD entry from a currency-keyed mapping."""
    if isinstance(value, Mapping):
        return value.get(VS_CURRENCY)
    return value


def to_amount(value: Any) -> Amount:
    """Convert a raw numeric field, or return ``UNAVAILABLE``."""
    value = _in_currency(value)
    if value is None or isinstance(value, bool):
        return UNAVAILABLE
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return UNAVAILABLE
    return UNAVAILABLE if math.isnan(number) else number


def to_timestamp(value: Any) -> Timestamp:
    """
    Normalize a raw date to a timezone-aware UTC datetime.

    Accepts ISO 8601 strings (with ``Z`` or an offset, or date only),
    RFC 2822 strings and epoch milliseconds. Naive values are taken as UTC.
    """
    value = _in_currency(value)
    if isinstance(value, bool) or value is None or value == "":
        return UNAVAILABLE

    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, int | float):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return UNAVAILABLE
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                return UNAVAILABLE

    if parsed is None:
        return UNAVAILABLE
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def summarize_description(text: Any) -> str:
    """Return the first sentence of ``text``, terminator included."""
    if not isinstance(text, str) or not (text := text.strip()):
        return ""
    if match := _SENTENCE_END.search(text):
        return text[: match.end()]
    return text


def _strings(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list | tuple):
        return ()
    return tuple(v.strip() for v in values if isinstance(v, str) and v.strip())


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _rank(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def adapt(payload: Any) -> AssetDetail:
    """
    Convert a raw asset detail payload into an ``AssetDetail``.

    Raises:
        MalformedPayloadError: If the payload is not an object or lacks one of
            ``id``, ``name`` or ``symbol``
    """
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError(
            f"Expected an asset object, got {type(payload).__name__}"
        )
    missing = [
        name
        for name in REQUIRED_FIELDS
        if not isinstance(payload.get(name), str) or not payload[name].strip()
    ]
    if missing:
        raise MalformedPayloadError(
            f"Asset payload is missing required field(s): {', '.join(missing)}"
        )

    market = _mapping(payload.get("market_data"))
    links = _mapping(payload.get("links"))

    return AssetDetail(
        id=payload["id"],
        name=payload["name"],
        symbol=payload["symbol"],
        market_cap_rank=_rank(payload.get("market_cap_rank")),
        description_summary=summarize_description(
            _mapping(payload.get("description")).get(DESCRIPTION_LANGUAGE)
        ),
        image_url_large=_text(_mapping(payload.get("image")).get("large")),
        market_data=AssetMarketData(
            current_price=to_amount(market.get("current_price")),
            market_cap=to_amount(market.get("market_cap")),
            high_24h=to_amount(market.get("high_24h")),
            low_24h=to_amount(market.get("low_24h")),
            price_change_24h=to_amount(market.get("price_change_24h")),
            price_change_pct_24h=to_amount(
                market.get("price_change_percentage_24h")
            ),
            circulating_supply=to_amount(market.get("circulating_supply")),
            total_supply=to_amount(market.get("total_supply")),
            all_time_high=PriceExtreme(
                value=to_amount(market.get("ath")),
                date=to_timestamp(market.get("ath_date")),
            ),
            all_time_low=PriceExtreme(
                value=to_amount(market.get("atl")),
                date=to_timestamp(market.get("atl_date")),
            ),
            last_updated=to_timestamp(
                payload.get("last_updated") or market.get("last_updated")
            ),
        ),
        links=AssetLinks(
            homepage_urls=_strings(links.get("homepage")),
            blockchain_explorer_urls=_strings(links.get("blockchain_site")),
        ),
        categories=_strings(payload.get("categories")),
    )


def format_amount(value: Amount, decimals: int | None = None) -> str:
    """Render an amount with thousands separators, or ``N/A``."""
    if value is UNAVAILABLE:
        return "N/A"
    if decimals is None:
        return f"{value:,}" if not float(value).is_integer() else f"{int(value):,}"
    return f"{value:,.{decimals}f}"
