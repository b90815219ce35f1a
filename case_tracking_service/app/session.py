# Per-client session: composes the case API, the freshness controller and the shared signal store
import datetime
import logging
import time
import uuid
from typing import Callable, Optional

import httpx

from case_tracking_service.app.config import settings
from case_tracking_service.app.models import Case, CaseSnapshot
from case_tracking_service.app.service.commands.handlers import COMMAND_HANDLERS
from case_tracking_service.app.service.commands.models import BaseCommand
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError, InvalidInputError
from case_tracking_service.app.service.freshness.controller import FreshnessController, SnapshotListener
from case_tracking_service.app.service.freshness.triggers import (
    NavigationIntent,
    PeriodicRefresher,
    RefreshOutcome,
    TriggerSource,
)
from case_tracking_service.app.service.interfaces.case_api_client import AbstractCaseApiClient
from case_tracking_service.app.service.interfaces.signal_store import AbstractSignalStore
from case_tracking_service.app.service.priority import engine as priority_engine
from case_tracking_service.infrastructure.case_api_client import CaseApiClient
from case_tracking_service.infrastructure.signal_store import get_signal_store

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ClientSession:
    """
    Everything one client (one tab, one view process) needs: the remote case API, the snapshot
    owned by a FreshnessController, the periodic fallback timer, and a binding to the shared
    signal store so writes in other sessions trigger a refetch here.
    """

    def __init__(
        self,
        api_client: AbstractCaseApiClient,
        signal_store: Optional[AbstractSignalStore] = None,
        role: Optional[str] = None,
        observer_id: Optional[str] = None,
        periodic_refresh_seconds: Optional[float] = None,
        foreground_debounce_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime.datetime] = _utcnow,
    ):
        self.api_client = api_client
        self.signal_store = signal_store
        self.role = role
        self.observer_id = observer_id or f"session-{uuid.uuid4()}"
        self._now = now
        self.controller = FreshnessController(
            api_client.list_cases,
            foreground_debounce_seconds=foreground_debounce_seconds,
            clock=clock,
            now=now,
        )
        self.periodic_refresher = PeriodicRefresher(
            self.controller.on_timer_elapsed,
            settings.PERIODIC_REFRESH_SECONDS if periodic_refresh_seconds is None else periodic_refresh_seconds,
        )

    def now(self) -> datetime.datetime:
        return self._now()

    # --- Lifecycle ---

    async def start(self) -> None:
        if self.signal_store is not None:
            self.controller.bind_signal_store(self.signal_store, self.observer_id)
            await self.signal_store.start()
        try:
            await self.controller.refresh(TriggerSource.INITIAL)
        except BaseCaseTrackingError as e:
            # Views start with an empty snapshot; the periodic timer retries.
            logger.warning(f"Initial case fetch for session {self.observer_id} failed: {e}")
        self.periodic_refresher.start()
        logger.info(f"Client session {self.observer_id} started (role: {self.role or 'unrestricted'}).")

    async def aclose(self) -> None:
        await self.periodic_refresher.stop()
        # The signal store is shared with other sessions; its owner closes it.
        await self.controller.aclose()
        logger.info(f"Client session {self.observer_id} closed.")

    # --- View contract ---

    def get_snapshot(self) -> CaseSnapshot:
        return self.controller.get_snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        return self.controller.subscribe(listener)

    async def request_refresh(self, reason: Optional[str] = None) -> RefreshOutcome:
        return await self.controller.request_refresh(reason)

    async def on_view_entered(self, intent: NavigationIntent) -> RefreshOutcome:
        return await self.controller.on_view_entered(intent)

    async def on_foreground_regained(self) -> RefreshOutcome:
        return await self.controller.on_foreground_regained()

    def preview_priority(self, case_type, resource_requirement: Optional[str] = None, estimated_duration_days=None) -> int:
        return priority_engine.score(case_type, resource_requirement, estimated_duration_days)

    async def current_case(self, case_id: str) -> Case:
        """The case as held in the snapshot, read once from the API if the snapshot lacks it."""
        case = self.get_snapshot().get(case_id)
        if case is not None:
            return case
        logger.debug(f"Case {case_id} not in snapshot generation {self.get_snapshot().generation}; reading it from the API.")
        return await self.api_client.get_case(case_id)

    async def execute(self, command: BaseCommand) -> Case:
        handler = COMMAND_HANDLERS.get(type(command))
        if handler is None:
            raise InvalidInputError(f"No handler registered for {type(command).__name__}.")
        return await handler(self, command)


def build_client_session(http_client: httpx.AsyncClient) -> ClientSession:
    """Creates a session wired from application settings."""
    return ClientSession(
        api_client=CaseApiClient(http_client),
        signal_store=get_signal_store(),
        role=settings.CLIENT_ROLE,
    )
