"""
Price-history series for the detail chart.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from .errors import MalformedPayloadError
from .models import PricePoint

logger = logging.getLogger(__name__)


def _parse_pair(pair: Any) -> PricePoint | None:
    """Parse one ``[timestamp_ms, price]`` pair into a PricePoint."""
    try:
        if not isinstance(pair, list | tuple) or len(pair) < 2:
            return None
        timestamp, price = pair[0], pair[1]
        if isinstance(timestamp, bool) or isinstance(price, bool):
            return None
        timestamp, price = float(timestamp), float(price)
        if math.isnan(timestamp) or math.isnan(price):
            return None
        return PricePoint(timestamp_ms=int(timestamp), price=price)
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Failed to parse price point: {pair!r}, error: {e}")
    return None


def build(payload: Any) -> tuple[PricePoint, ...]:
    """
    Build chart points from a market-chart payload.

    ``payload`` is either the upstream object holding a ``prices`` list or the
    bare list of ``[timestamp_ms, price]`` pairs. Points keep the upstream
    order. Unparseable pairs are skipped.

    Raises:
        MalformedPayloadError: If the payload is neither an object nor a list,
            or its ``prices`` entry is not a list
    """
    if isinstance(payload, Mapping):
        prices = payload.get("prices")
        payload = [] if prices is None else prices
    if not isinstance(payload, list | tuple):
        raise MalformedPayloadError(
            f"Expected a list of price pairs, got {type(payload).__name__}"
        )

    points = [point for pair in payload if (point := _parse_pair(pair)) is not None]
    if skipped := len(payload) - len(points):
        logger.warning(f"Skipped {skipped} malformed price point(s)")
    return tuple(points)
