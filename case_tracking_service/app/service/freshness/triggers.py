# Refresh trigger sources and the periodic fallback timer
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from case_tracking_service.app.service.exceptions import BaseCaseTrackingError

logger = logging.getLogger(__name__)


class TriggerSource(str, Enum):
    INITIAL = "INITIAL"
    NAVIGATION = "NAVIGATION"
    FOREGROUND = "FOREGROUND"
    CROSS_TAB = "CROSS_TAB"
    PERIODIC = "PERIODIC"


class RefreshOutcome(str, Enum):
    FETCHED = "FETCHED"          # new data became the snapshot
    COALESCED = "COALESCED"      # a fetch was already in flight
    DEBOUNCED = "DEBOUNCED"      # foreground signal arrived inside the debounce window
    SKIPPED = "SKIPPED"          # the trigger did not ask for a refresh
    DISCARDED = "DISCARDED"      # the response was older than data already applied


class NavigationIntent:
    """
    The "data may be stale" flag a view is entered with (e.g. after returning from an edit flow).
    The flag is consumed by the first refresh so re-rendering the same view does not refetch.
    """

    def __init__(self, stale: bool = False, reason: Optional[str] = None):
        self.stale = stale
        self.reason = reason

    def consume(self) -> bool:
        was_stale = self.stale
        self.stale = False
        return was_stale

    def __repr__(self) -> str:
        return f"NavigationIntent(stale={self.stale}, reason={self.reason!r})"


class PeriodicRefresher:
    """Fires a refresh at a fixed interval regardless of user activity."""

    def __init__(self, on_tick: Callable[[], Awaitable[object]], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._on_tick = on_tick
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Periodic refresh started every {self.interval_seconds}s.")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Periodic refresh stopped.")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                outcome = await self._on_tick()
                logger.debug(f"Periodic refresh tick finished: {outcome}")
            except BaseCaseTrackingError as e:
                # Nobody awaits the timer; the next tick is the retry.
                logger.warning(f"Periodic refresh failed, will retry on next tick: {e}")
            except Exception as e:
                logger.error(f"Unexpected error in periodic refresh tick: {e}", exc_info=True)
