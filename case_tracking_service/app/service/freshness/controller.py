# Snapshot owner and refresh reconciler
import asyncio
import datetime
import logging
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Set

from opentelemetry.trace.status import Status, StatusCode

from case_tracking_service.app.config import settings
from case_tracking_service.app.models import Case, CaseSnapshot
from case_tracking_service.app.observability import (
    tracer,
    snapshot_fetches_counter,
    coalesced_triggers_counter,
    snapshot_fetch_latency_histogram,
)
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError
from case_tracking_service.app.service.interfaces.signal_store import AbstractSignalStore, SignalChange
from .triggers import NavigationIntent, RefreshOutcome, TriggerSource

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[CaseSnapshot], None]
FetchCases = Callable[[], Awaitable[Iterable[Case]]]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class FreshnessController:
    """
    Sole owner of the client's CaseSnapshot.

    Every refresh trigger (navigation intent, foreground regain, cross-tab signal, periodic timer)
    funnels into `refresh`, which allows at most one fetch in flight and ignores triggers that
    arrive while one is outstanding. Fetches and single-case reconciliations are stamped with a
    sequence number; a fetch whose stamp is older than the last applied write is discarded.
    A failed fetch leaves the previous snapshot in place and re-raises to the caller.
    """

    def __init__(
        self,
        fetch_cases: FetchCases,
        foreground_debounce_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime.datetime] = _utcnow,
    ):
        self._fetch_cases = fetch_cases
        self._foreground_debounce_seconds = (
            settings.FOREGROUND_DEBOUNCE_SECONDS if foreground_debounce_seconds is None else foreground_debounce_seconds
        )
        self._clock = clock
        self._now = now

        self._snapshot = CaseSnapshot.empty()
        self._subscribers: List[SnapshotListener] = []
        self._fetch_in_flight = False
        self._sequence = 0
        self._last_applied_sequence = 0
        self._last_foreground_refresh: Optional[float] = None

        self._signal_store: Optional[AbstractSignalStore] = None
        self._observer_id: Optional[str] = None
        self._refresh_key = settings.CROSS_TAB_REFRESH_KEY
        self._signal_unsubscribe: Optional[Callable[[], None]] = None
        self._pending_tasks: Set[asyncio.Task] = set()

    # --- Read side ---

    def get_snapshot(self) -> CaseSnapshot:
        return self._snapshot

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch_in_flight

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._subscribers.append(listener)

        def unsubscribe() -> None:
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: CaseSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._subscribers):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Snapshot subscriber {listener!r} failed for generation {snapshot.generation}: {e}", exc_info=True)

    # --- Reconciler ---

    async def refresh(self, trigger: TriggerSource) -> RefreshOutcome:
        if self._fetch_in_flight:
            logger.debug(f"Refresh trigger {trigger.value} coalesced into in-flight fetch.")
            if hasattr(coalesced_triggers_counter, "add"):
                coalesced_triggers_counter.add(1, {"trigger": trigger.value})
            return RefreshOutcome.COALESCED

        self._fetch_in_flight = True
        self._sequence += 1
        sequence = self._sequence
        started = time.monotonic()

        with tracer.start_as_current_span("snapshot.fetch") as span:
            span.set_attribute("refresh.trigger", trigger.value)
            span.set_attribute("refresh.sequence", sequence)
            try:
                cases = list(await self._fetch_cases())
            except BaseCaseTrackingError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, description=f"Fetch Error: {type(e).__name__}"))
                if hasattr(snapshot_fetches_counter, "add"):
                    snapshot_fetches_counter.add(1, {"trigger": trigger.value, "outcome": "FAILED"})
                logger.warning(
                    f"Snapshot fetch for trigger {trigger.value} failed; keeping generation {self._snapshot.generation}: {e}"
                )
                raise
            finally:
                self._fetch_in_flight = False
                if hasattr(snapshot_fetch_latency_histogram, "record"):
                    snapshot_fetch_latency_histogram.record(time.monotonic() - started, attributes={"trigger": trigger.value})

            outcome = self._accept_fetch(sequence, cases)
            span.set_attribute("refresh.outcome", outcome.value)

        if hasattr(snapshot_fetches_counter, "add"):
            snapshot_fetches_counter.add(1, {"trigger": trigger.value, "outcome": outcome.value})
        return outcome

    def _accept_fetch(self, sequence: int, cases: List[Case]) -> RefreshOutcome:
        if sequence <= self._last_applied_sequence:
            logger.info(
                f"Discarding fetch #{sequence}: a newer write (#{self._last_applied_sequence}) was applied while it was in flight."
            )
            return RefreshOutcome.DISCARDED
        self._last_applied_sequence = sequence
        snapshot = CaseSnapshot(
            cases=tuple(cases),
            fetched_at=self._now(),
            generation=self._snapshot.generation + 1,
        )
        self._publish(snapshot)
        logger.info(f"Snapshot generation {snapshot.generation} published with {len(snapshot.cases)} cases.")
        return RefreshOutcome.FETCHED

    def apply_case(self, case: Case) -> CaseSnapshot:
        """Upserts one server-confirmed case into the snapshot without a full refetch."""
        self._sequence += 1
        self._last_applied_sequence = self._sequence

        cases = list(self._snapshot.cases)
        for index, existing in enumerate(cases):
            if existing.id == case.id:
                cases[index] = case
                break
        else:
            cases.append(case)

        snapshot = CaseSnapshot(
            cases=tuple(cases),
            fetched_at=self._snapshot.fetched_at,
            generation=self._snapshot.generation + 1,
        )
        self._publish(snapshot)
        logger.debug(f"Case {case.id} reconciled into snapshot generation {snapshot.generation}.")
        return snapshot

    # --- Trigger handlers ---

    async def on_view_entered(self, intent: NavigationIntent) -> RefreshOutcome:
        if not intent.consume():
            return RefreshOutcome.SKIPPED
        logger.info(f"View entered with stale-data intent ({intent.reason}); refreshing.")
        return await self.refresh(TriggerSource.NAVIGATION)

    async def request_refresh(self, reason: Optional[str] = None) -> RefreshOutcome:
        return await self.on_view_entered(NavigationIntent(stale=True, reason=reason))

    async def on_foreground_regained(self) -> RefreshOutcome:
        now = self._clock()
        if (
            self._last_foreground_refresh is not None
            and now - self._last_foreground_refresh < self._foreground_debounce_seconds
        ):
            logger.debug("Foreground regain inside debounce window; ignored.")
            return RefreshOutcome.DEBOUNCED
        self._last_foreground_refresh = now
        return await self.refresh(TriggerSource.FOREGROUND)

    async def on_timer_elapsed(self) -> RefreshOutcome:
        return await self.refresh(TriggerSource.PERIODIC)

    # --- Cross-tab signal ---

    def bind_signal_store(self, store: AbstractSignalStore, observer_id: str, refresh_key: Optional[str] = None) -> None:
        self.unbind_signal_store()
        self._signal_store = store
        self._observer_id = observer_id
        if refresh_key:
            self._refresh_key = refresh_key
        self._signal_unsubscribe = store.subscribe(observer_id, self._on_signal_change)
        logger.info(f"Observer {observer_id} listening for '{self._refresh_key}' signals.")

    def unbind_signal_store(self) -> None:
        if self._signal_unsubscribe is not None:
            self._signal_unsubscribe()
        self._signal_unsubscribe = None
        self._signal_store = None

    def _on_signal_change(self, change: SignalChange) -> None:
        # Store listeners are synchronous; the refetch runs as its own task on the loop.
        if change.key != self._refresh_key or change.new_value is None:
            return
        task = asyncio.get_running_loop().create_task(self.on_cross_tab_signal(change))
        self._pending_tasks.add(task)
        task.add_done_callback(self._on_signal_task_done)

    def _on_signal_task_done(self, task: asyncio.Task) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Cross-tab refresh failed: {error}")

    async def on_cross_tab_signal(self, change: SignalChange) -> RefreshOutcome:
        if change.key != self._refresh_key or change.new_value is None:
            return RefreshOutcome.SKIPPED
        logger.info(f"Cross-tab refresh signal from {change.origin} observed by {self._observer_id}.")
        try:
            return await self.refresh(TriggerSource.CROSS_TAB)
        finally:
            if self._signal_store is not None:
                self._signal_store.remove(self._refresh_key, origin=self._observer_id)

    def signal_other_observers(self) -> None:
        """Records a write to the shared refresh key so every other observer refetches once."""
        if self._signal_store is None:
            return
        self._signal_store.set(self._refresh_key, str(int(self._now().timestamp() * 1000)), origin=self._observer_id)

    async def settle(self) -> None:
        """Waits for cross-tab refreshes started by signal listeners."""
        while self._pending_tasks:
            await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        self.unbind_signal_store()
        for task in list(self._pending_tasks):
            task.cancel()
        await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)
        self._pending_tasks.clear()
