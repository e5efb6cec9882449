"""
In-memory holder of the latest successfully fetched market list.
"""

import logging
from typing import Any

from pydantic import ValidationError

from .errors import MalformedPayloadError
from .models import AssetSummary

logger = logging.getLogger(__name__)


def parse_asset_summary(record: Any) -> AssetSummary | None:
    """Parse one raw market record, returning None if it is unusable."""
    if not isinstance(record, dict):
        logger.warning(f"Skipping non-object market record: {record!r}")
        return None
    try:
        return AssetSummary.model_validate(record)
    except ValidationError as e:
        logger.warning(
            f"Failed to parse market record {record.get('id')!r}: "
            f"{e.error_count()} invalid field(s)"
        )
        return None


def decode_summaries(payload: Any) -> tuple[tuple[AssetSummary, ...], int]:
    """
    Decode a raw market list, tolerating bad records.

    Returns:
        The decoded summaries in payload order and the number of records
        dropped because they were malformed or repeated an earlier id

    Raises:
        MalformedPayloadError: If the payload is not a JSON array
    """
    if not isinstance(payload, list):
        raise MalformedPayloadError(
            f"Expected a list of market records, got {type(payload).__name__}"
        )

    summaries: list[AssetSummary] = []
    seen: set[str] = set()
    for record in payload:
        if (summary := parse_asset_summary(record)) is None:
            continue
        if summary.id in seen:
            logger.warning(f"Skipping duplicate market record {summary.id!r}")
            continue
        seen.add(summary.id)
        summaries.append(summary)

    return tuple(summaries), len(payload) - len(summaries)


class MarketDataStore:
    """Replace-only store of the latest decoded market list."""

    def __init__(self) -> None:
        self._summaries: tuple[AssetSummary, ...] = ()
        self._dropped_count = 0

    @property
    def summaries(self) -> tuple[AssetSummary, ...]:
        return self._summaries

    @property
    def dropped_count(self) -> int:
        """Records dropped while decoding the current contents."""
        return self._dropped_count

    def load(self, payload: Any) -> tuple[AssetSummary, ...]:
        """Decode ``payload`` and replace the stored list with the result."""
        summaries, dropped = decode_summaries(payload)
        self._summaries = summaries
        self._dropped_count = dropped

        if dropped:
            logger.warning(f"Dropped {dropped} malformed market record(s)")
        logger.info(f"Stored {len(summaries)} market records")
        return summaries
