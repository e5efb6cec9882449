"""
Market-data session: the pipeline behind one dashboard.
"""

import asyncio
import logging

from . import detail, filter_sort, series
from .client import MarketDataClient
from .errors import InvalidOptionError
from .fetch import FetchLifecycleController, Fetcher, FetchState, Idle, Slot
from .models import QueryOptions, SortKey, ViewList
from .query import (
    build_detail_request,
    build_list_request,
    build_series_request,
    validate_result_limit,
)
from .settings import market_data_settings
from .store import MarketDataStore

logger = logging.getLogger(__name__)


class MarketDataSession:
    """
    Owns the fetch lifecycles and the market store for one dashboard.

    Changing the result limit issues exactly one list fetch. Filter text and
    sort key only affect ``view()``, which is recomputed from the store on
    every call.
    """

    def __init__(
        self,
        fetch: Fetcher | None = None,
        options: QueryOptions | None = None,
    ) -> None:
        self.controller = FetchLifecycleController(
            fetch or MarketDataClient().fetch_json
        )
        self.store = MarketDataStore()
        self._options = options or QueryOptions(
            result_limit=market_data_settings.default_result_limit
        )

    @property
    def options(self) -> QueryOptions:
        return self._options

    @property
    def list_state(self) -> FetchState:
        return self.controller.state(Slot.LIST)

    @property
    def detail_state(self) -> FetchState:
        return self.controller.state(Slot.DETAIL)

    @property
    def series_state(self) -> FetchState:
        return self.controller.state(Slot.SERIES)

    async def load(self) -> FetchState | None:
        """Fetch the market list for the current result limit."""
        request = build_list_request(self._options.result_limit)
        logger.info(f"Fetching top {self._options.result_limit} assets")
        return await self.controller.start(Slot.LIST, request, self.store.load)

    async def set_result_limit(self, result_limit: int) -> FetchState | None:
        """
        Change the number of listed assets and refetch.

        Raises:
            InvalidOptionError: If ``result_limit`` is not a supported size
        """
        validate_result_limit(result_limit)
        if result_limit == self._options.result_limit and not isinstance(
            self.list_state, Idle
        ):
            return self.list_state
        self._options = self._options.model_copy(
            update={"result_limit": result_limit}
        )
        return await self.load()

    def set_filter_text(self, filter_text: str) -> None:
        self._options = self._options.model_copy(update={"filter_text": filter_text})

    def set_sort_key(self, sort_key: SortKey | str) -> None:
        """
        Change the local ordering of the view.

        Raises:
            InvalidOptionError: If ``sort_key`` is not a known ordering
        """
        try:
            sort_key = SortKey(sort_key)
        except ValueError as e:
            raise InvalidOptionError(f"Unsupported sort key: {sort_key!r}") from e
        self._options = self._options.model_copy(update={"sort_key": sort_key})

    def view(self) -> ViewList:
        """Filtered and sorted summaries for the current options."""
        return filter_sort.build_view(
            self.store.summaries, self._options.filter_text, self._options.sort_key
        )

    async def load_detail(self, asset_id: str) -> FetchState | None:
        request = build_detail_request(asset_id)
        return await self.controller.start(Slot.DETAIL, request, detail.adapt)

    async def load_series(self, asset_id: str) -> FetchState | None:
        request = build_series_request(asset_id)
        return await self.controller.start(Slot.SERIES, request, series.build)

    async def open_asset(self, asset_id: str) -> tuple[FetchState, FetchState]:
        """Fetch the detail and price history of ``asset_id`` concurrently."""
        logger.info(f"Opening asset {asset_id!r}")
        await asyncio.gather(self.load_detail(asset_id), self.load_series(asset_id))
        return self.detail_state, self.series_state

    def close_asset(self) -> None:
        self.controller.reset(Slot.DETAIL)
        self.controller.reset(Slot.SERIES)
