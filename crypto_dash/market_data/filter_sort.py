"""
Filtering and ordering of the market list for display.
"""

import math
from collections.abc import Callable, Iterable
from typing import Final

from .models import AssetSummary, SortKey, ViewList

SortField = Callable[[AssetSummary], float | None]

_SORT_FIELDS: Final[dict[SortKey, tuple[SortField, bool]]] = {
    SortKey.MARKET_CAP_DESC: (lambda s: s.market_cap, True),
    SortKey.MARKET_CAP_ASC: (lambda s: s.market_cap, False),
    SortKey.PRICE_DESC: (lambda s: s.current_price, True),
    SortKey.PRICE_ASC: (lambda s: s.current_price, False),
    SortKey.CHANGE_DESC: (lambda s: s.price_change_pct_24h, True),
    SortKey.CHANGE_ASC: (lambda s: s.price_change_pct_24h, False),
}


def matches(summary: AssetSummary, filter_text: str) -> bool:
    """Case-insensitive substring match on name or symbol."""
    needle = filter_text.casefold()
    return needle in summary.name.casefold() or needle in summary.symbol.casefold()


def _is_missing(value: float | None) -> bool:
    return value is None or math.isnan(value)


def apply(
    summaries: Iterable[AssetSummary], filter_text: str, sort_key: SortKey
) -> tuple[AssetSummary, ...]:
    """
    Filter ``summaries`` by ``filter_text`` and order them by ``sort_key``.

    The sort is stable in both directions. Entries whose sort field is missing
    or NaN are placed last, keeping their relative order.
    """
    field, descending = _SORT_FIELDS[SortKey(sort_key)]
    filtered = [s for s in summaries if matches(s, filter_text)]

    present = [s for s in filtered if not _is_missing(field(s))]
    missing = [s for s in filtered if _is_missing(field(s))]
    present.sort(key=field, reverse=descending)

    return (*present, *missing)


def build_view(
    summaries: Iterable[AssetSummary], filter_text: str, sort_key: SortKey
) -> ViewList:
    ordered = apply(summaries, filter_text, sort_key)
    return ViewList(summaries=ordered, is_empty=not ordered)
