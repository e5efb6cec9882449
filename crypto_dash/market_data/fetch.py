"""
Fetch lifecycle for the independently tracked request slots.

Every slot (list, detail, series) publishes one ``FetchState``. Each call to
``FetchLifecycleController.start`` is tagged with a per-slot generation number
and only the latest generation may move its slot out of ``Pending``; replies
to superseded requests are dropped when they arrive.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final, Generic, TypeVar, Union

from .errors import MalformedPayloadError, MarketDataError
from .models import RequestDescriptor

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Slot(StrEnum):
    """Independently tracked request lifecycles."""

    LIST = "list"
    DETAIL = "detail"
    SERIES = "series"


FAILURE_MESSAGES: Final[dict[Slot, str]] = {
    Slot.LIST: "Failed to fetch data",
    Slot.DETAIL: "Failed to fetch coin",
    Slot.SERIES: "Failed to fetch price history",
}
MALFORMED_MESSAGE: Final[str] = "Received malformed market data"


@dataclass(frozen=True)
class Idle:
    """Nothing requested yet, or the slot was reset."""


@dataclass(frozen=True)
class Pending:
    """A request is outstanding."""

    generation: int


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    """The latest request resolved with a decoded value."""

    value: T
    generation: int = 0


@dataclass(frozen=True)
class Failed:
    """The latest request failed; ``message`` is safe to show verbatim."""

    message: str
    generation: int = 0


FetchState = Union[Idle, Pending, Succeeded[Any], Failed]

IDLE: Final[Idle] = Idle()

Fetcher = Callable[[RequestDescriptor], Awaitable[Any]]
Decoder = Callable[[Any], Any]
Listener = Callable[[Slot, FetchState], None]


class FetchLifecycleController:
    """Drives at most one current request per slot and publishes its state."""

    def __init__(self, fetch: Fetcher) -> None:
        self._fetch = fetch
        self._states: dict[Slot, FetchState] = dict.fromkeys(Slot, IDLE)
        self._generations: dict[Slot, int] = dict.fromkeys(Slot, 0)
        self._listeners: list[Listener] = []

    def state(self, slot: Slot) -> FetchState:
        return self._states[slot]

    def generation(self, slot: Slot) -> int:
        return self._generations[slot]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for every state transition; returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(
        self,
        slot: Slot,
        request: RequestDescriptor,
        decode: Decoder | None = None,
    ) -> FetchState | None:
        """
        Issue ``request`` for ``slot`` and publish the outcome.

        Args:
            slot: The lifecycle the request belongs to
            request: The upstream request to perform
            decode: Optional conversion of the raw payload, only applied when
                the request is still the slot's latest

        Returns:
            The published ``Succeeded`` or ``Failed`` state, or None when a
            later ``start`` or ``reset`` superseded this request
        """
        self._generations[slot] += 1
        generation = self._generations[slot]
        self._publish(slot, Pending(generation))

        try:
            payload = await self._fetch(request)
        except MarketDataError as e:
            if self._is_stale(slot, generation):
                return None
            logger.warning(f"{slot} fetch #{generation} failed: {e}")
            message = (
                MALFORMED_MESSAGE
                if isinstance(e, MalformedPayloadError)
                else FAILURE_MESSAGES[slot]
            )
            return self._publish(slot, Failed(message, generation))

        if self._is_stale(slot, generation):
            return None

        try:
            value = decode(payload) if decode is not None else payload
        except MalformedPayloadError as e:
            logger.warning(f"{slot} fetch #{generation} returned bad payload: {e}")
            return self._publish(slot, Failed(MALFORMED_MESSAGE, generation))

        return self._publish(slot, Succeeded(value, generation))

    def reset(self, slot: Slot) -> None:
        """Return ``slot`` to Idle and orphan any request still in flight."""
        self._generations[slot] += 1
        self._publish(slot, IDLE)

    def _is_stale(self, slot: Slot, generation: int) -> bool:
        if generation != self._generations[slot]:
            logger.debug(
                f"Discarding {slot} response #{generation}, "
                f"current is #{self._generations[slot]}"
            )
            return True
        return False

    def _publish(self, slot: Slot, state: FetchState) -> FetchState:
        self._states[slot] = state
        for listener in list(self._listeners):
            try:
                listener(slot, state)
            except Exception:
                logger.exception(f"Listener failed on {slot} transition to {state!r}")
        return state
