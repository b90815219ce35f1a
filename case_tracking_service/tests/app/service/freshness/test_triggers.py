# Unit Tests for trigger sources and the periodic refresher
import asyncio
import pytest
from unittest.mock import AsyncMock

from case_tracking_service.app.service.exceptions import TransportError
from case_tracking_service.app.service.freshness.triggers import NavigationIntent, PeriodicRefresher, RefreshOutcome


def test_navigation_intent_consume_clears_flag():
    intent = NavigationIntent(stale=True, reason="edited")
    assert intent.consume() is True
    assert intent.consume() is False
    assert "edited" in repr(intent)

def test_periodic_refresher_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PeriodicRefresher(AsyncMock(), 0)

@pytest.mark.asyncio
async def test_periodic_refresher_ticks_until_stopped():
    ticked = asyncio.Event()
    on_tick = AsyncMock(side_effect=lambda: ticked.set() or RefreshOutcome.FETCHED)
    refresher = PeriodicRefresher(on_tick, interval_seconds=0.01)

    refresher.start()
    refresher.start()  # second start is a no-op
    await asyncio.wait_for(ticked.wait(), timeout=1.0)
    await refresher.stop()

    assert on_tick.await_count >= 1
    assert refresher.running is False

@pytest.mark.asyncio
async def test_periodic_refresher_survives_failed_ticks():
    calls = []

    async def on_tick():
        calls.append(1)
        if len(calls) == 1:
            raise TransportError("backend down")
        return RefreshOutcome.FETCHED

    refresher = PeriodicRefresher(on_tick, interval_seconds=0.01)
    refresher.start()
    for _ in range(100):
        if len(calls) >= 2:
            break
        await asyncio.sleep(0.01)
    await refresher.stop()

    assert len(calls) >= 2

@pytest.mark.asyncio
async def test_stop_without_start_is_a_no_op():
    refresher = PeriodicRefresher(AsyncMock(), interval_seconds=1)
    await refresher.stop()
    assert refresher.running is False

@pytest.mark.asyncio
async def test_periodic_refresher_survives_unexpected_errors(caplog):
    on_tick = AsyncMock(side_effect=[RuntimeError("snapshot listener bug"), RefreshOutcome.FETCHED, RefreshOutcome.FETCHED])
    refresher = PeriodicRefresher(on_tick, interval_seconds=0.01)
    refresher.start()
    for _ in range(100):
        if on_tick.await_count >= 2:
            break
        await asyncio.sleep(0.01)

    assert refresher.running is True
    await refresher.stop()

    assert on_tick.await_count >= 2
    assert "snapshot listener bug" in caplog.text
