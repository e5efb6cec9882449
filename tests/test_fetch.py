"""
Tests for the per-slot fetch lifecycle.
"""

import asyncio

import pytest
from conftest import ControlledFetcher, ScriptedFetcher, settle

from crypto_dash.market_data.errors import (
    HttpStatusError,
    MalformedPayloadError,
    TransportError,
)
from crypto_dash.market_data.fetch import (
    IDLE,
    MALFORMED_MESSAGE,
    Failed,
    FetchLifecycleController,
    Pending,
    Slot,
    Succeeded,
)
from crypto_dash.market_data.models import RequestDescriptor

REQUEST_A = RequestDescriptor(url="https://api.example/a")
REQUEST_B = RequestDescriptor(url="https://api.example/b")


class TestFetchLifecycle:
    """Test cases for FetchLifecycleController."""

    def test_slots_start_idle(self):
        controller = FetchLifecycleController(ScriptedFetcher())
        for slot in Slot:
            assert controller.state(slot) == IDLE
            assert controller.generation(slot) == 0

    @pytest.mark.asyncio
    async def test_pending_while_outstanding(self, controlled_fetcher):
        """Test that a started request leaves its slot pending."""
        controller = FetchLifecycleController(controlled_fetcher)

        task = asyncio.create_task(controller.start(Slot.LIST, REQUEST_A))
        await settle()

        assert controller.state(Slot.LIST) == Pending(1)
        assert len(controlled_fetcher.calls) == 1

        controlled_fetcher.pending[0].set_result([])
        assert await task == Succeeded([], 1)

    @pytest.mark.asyncio
    async def test_success_applies_decoder(self):
        fetcher = ScriptedFetcher({REQUEST_A.url: {"n": 2}})
        controller = FetchLifecycleController(fetcher)

        state = await controller.start(Slot.DETAIL, REQUEST_A, lambda p: p["n"] * 10)

        assert state == Succeeded(20, 1)
        assert controller.state(Slot.DETAIL) == state

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "slot,error,message",
        [
            (Slot.LIST, HttpStatusError(500, REQUEST_A.url), "Failed to fetch data"),
            (Slot.LIST, TransportError("dns"), "Failed to fetch data"),
            (Slot.DETAIL, HttpStatusError(404, REQUEST_A.url), "Failed to fetch coin"),
            (Slot.SERIES, TransportError("reset"), "Failed to fetch price history"),
            (Slot.LIST, MalformedPayloadError("bad json"), MALFORMED_MESSAGE),
        ],
    )
    async def test_failures_become_stable_messages(self, slot, error, message):
        """Test that transport errors surface as Failed, never as exceptions."""
        controller = FetchLifecycleController(ScriptedFetcher({REQUEST_A.url: error}))

        state = await controller.start(slot, REQUEST_A)

        assert isinstance(state, Failed)
        assert state.message == message
        assert controller.state(slot) == state

    @pytest.mark.asyncio
    async def test_decoder_malformed_payload_fails_slot(self):
        def reject(_):
            raise MalformedPayloadError("missing id")

        controller = FetchLifecycleController(ScriptedFetcher({REQUEST_A.url: {}}))

        state = await controller.start(Slot.DETAIL, REQUEST_A, reject)

        assert state == Failed(MALFORMED_MESSAGE, 1)

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        """Test that programming errors are not hidden behind Failed."""
        controller = FetchLifecycleController(
            ScriptedFetcher({REQUEST_A.url: RuntimeError("bug")})
        )
        with pytest.raises(RuntimeError):
            await controller.start(Slot.LIST, REQUEST_A)

    @pytest.mark.asyncio
    async def test_one_fetch_per_start_without_retry(self):
        fetcher = ScriptedFetcher({REQUEST_A.url: TransportError("down")})
        controller = FetchLifecycleController(fetcher)

        await controller.start(Slot.LIST, REQUEST_A)

        assert len(fetcher.calls) == 1
        assert isinstance(controller.state(Slot.LIST), Failed)


class TestRaceGuard:
    """Test cases for discarding superseded responses."""

    @pytest.mark.asyncio
    async def test_later_request_wins_when_it_resolves_first(self, controlled_fetcher):
        """Test that a slow, superseded reply cannot overwrite a newer one."""
        controller = FetchLifecycleController(controlled_fetcher)

        first = asyncio.create_task(controller.start(Slot.LIST, REQUEST_A))
        second = asyncio.create_task(controller.start(Slot.LIST, REQUEST_B))
        await settle()

        controlled_fetcher.pending[1].set_result(["second"])
        assert await second == Succeeded(["second"], 2)

        controlled_fetcher.pending[0].set_result(["first"])
        assert await first is None

        assert controller.state(Slot.LIST) == Succeeded(["second"], 2)

    @pytest.mark.asyncio
    async def test_superseded_request_keeps_slot_pending(self, controlled_fetcher):
        controller = FetchLifecycleController(controlled_fetcher)

        first = asyncio.create_task(controller.start(Slot.LIST, REQUEST_A))
        second = asyncio.create_task(controller.start(Slot.LIST, REQUEST_B))
        await settle()

        controlled_fetcher.pending[0].set_result(["first"])
        assert await first is None
        assert controller.state(Slot.LIST) == Pending(2)

        controlled_fetcher.pending[1].set_result(["second"])
        await second
        assert controller.state(Slot.LIST) == Succeeded(["second"], 2)

    @pytest.mark.asyncio
    async def test_stale_failure_is_discarded(self, controlled_fetcher):
        controller = FetchLifecycleController(controlled_fetcher)

        first = asyncio.create_task(controller.start(Slot.LIST, REQUEST_A))
        second = asyncio.create_task(controller.start(Slot.LIST, REQUEST_B))
        await settle()

        controlled_fetcher.pending[1].set_result(["ok"])
        await second
        controlled_fetcher.pending[0].set_exception(TransportError("late"))

        assert await first is None
        assert controller.state(Slot.LIST) == Succeeded(["ok"], 2)

    @pytest.mark.asyncio
    async def test_stale_response_skips_decoder(self, controlled_fetcher):
        decoded = []
        controller = FetchLifecycleController(controlled_fetcher)

        first = asyncio.create_task(
            controller.start(Slot.LIST, REQUEST_A, decoded.append)
        )
        await settle()
        second = asyncio.create_task(
            controller.start(Slot.LIST, REQUEST_B, decoded.append)
        )
        await settle()

        controlled_fetcher.pending[0].set_result("stale")
        controlled_fetcher.pending[1].set_result("fresh")
        await asyncio.gather(first, second)

        assert decoded == ["fresh"]

    @pytest.mark.asyncio
    async def test_slots_are_independent(self, controlled_fetcher):
        controller = FetchLifecycleController(controlled_fetcher)

        listing = asyncio.create_task(controller.start(Slot.LIST, REQUEST_A))
        detail = asyncio.create_task(controller.start(Slot.DETAIL, REQUEST_B))
        await settle()

        controlled_fetcher.pending[0].set_result(["list"])
        controlled_fetcher.pending[1].set_result({"id": "x"})

        assert await listing == Succeeded(["list"], 1)
        assert await detail == Succeeded({"id": "x"}, 1)

    @pytest.mark.asyncio
    async def test_reset_orphans_inflight_request(self, controlled_fetcher):
        """Test that a reply arriving after reset leaves the slot idle."""
        controller = FetchLifecycleController(controlled_fetcher)

        task = asyncio.create_task(controller.start(Slot.DETAIL, REQUEST_A))
        await settle()
        controller.reset(Slot.DETAIL)
        assert controller.state(Slot.DETAIL) == IDLE

        controlled_fetcher.pending[0].set_result({"id": "bitcoin"})
        assert await task is None
        assert controller.state(Slot.DETAIL) == IDLE


class TestSubscribe:
    """Test cases for state transition listeners."""

    @pytest.mark.asyncio
    async def test_listener_sees_every_transition(self):
        seen = []
        controller = FetchLifecycleController(ScriptedFetcher({REQUEST_A.url: [1]}))
        unsubscribe = controller.subscribe(lambda slot, state: seen.append((slot, state)))

        await controller.start(Slot.LIST, REQUEST_A)
        controller.reset(Slot.LIST)
        unsubscribe()
        await controller.start(Slot.LIST, REQUEST_A)

        assert seen == [
            (Slot.LIST, Pending(1)),
            (Slot.LIST, Succeeded([1], 1)),
            (Slot.LIST, IDLE),
        ]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stall_slot(self):
        """Test that a raising listener neither blocks the fetch nor others."""
        seen = []
        controller = FetchLifecycleController(ScriptedFetcher({REQUEST_A.url: [1]}))

        def broken(slot, state):
            raise RuntimeError("listener bug")

        controller.subscribe(broken)
        controller.subscribe(lambda slot, state: seen.append(state))

        state = await controller.start(Slot.LIST, REQUEST_A)

        assert state == Succeeded([1], 1)
        assert controller.state(Slot.LIST) == state
        assert seen == [Pending(1), Succeeded([1], 1)]
