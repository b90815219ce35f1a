# API Router for the case snapshot and trigger signals
import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from case_tracking_service.app.api.errors import to_http_exception
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import CamelModel, Case, CaseStatus, CaseType
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError
from case_tracking_service.app.service.freshness.triggers import NavigationIntent, RefreshOutcome
from case_tracking_service.app.service.queries import query_cases

logger = logging.getLogger(__name__)
router = APIRouter()


class SnapshotResponse(CamelModel):
    cases: List[Case]
    fetched_at: Optional[datetime.datetime] = None
    generation: int
    fetch_in_flight: bool = False


class RefreshRequest(BaseModel):
    reason: Optional[str] = None


class RefreshResponse(CamelModel):
    outcome: RefreshOutcome
    generation: int


@router.get("/snapshot", response_model=SnapshotResponse, tags=["Snapshot"])
async def get_snapshot(
    status: Optional[CaseStatus] = None,
    case_type: Optional[CaseType] = Query(default=None, alias="caseType"),
    priority: Optional[int] = Query(default=None, ge=1, le=10),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    descending: bool = False,
    session=Depends(get_client_session),
):
    snapshot = session.get_snapshot()
    try:
        cases = query_cases(
            snapshot,
            status=status,
            case_type=case_type,
            priority=priority,
            search=search,
            sort_by=sort_by,
            descending=descending,
        )
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "query the case snapshot")
    return SnapshotResponse(
        cases=cases,
        fetched_at=snapshot.fetched_at,
        generation=snapshot.generation,
        fetch_in_flight=session.controller.fetch_in_flight,
    )


@router.get("/cases/{case_id}", response_model=Case, tags=["Cases"])
async def get_case(case_id: str, session=Depends(get_client_session)):
    try:
        return await session.current_case(case_id)
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, f"retrieve case {case_id}")


@router.post("/refresh", response_model=RefreshResponse, tags=["Snapshot"])
async def request_refresh(request_data: Optional[RefreshRequest] = None, session=Depends(get_client_session)):
    """
    Navigation-intent trigger: a view entered with its "data may be stale" flag set.
    """
    intent = NavigationIntent(stale=True, reason=request_data.reason if request_data else None)
    try:
        outcome = await session.on_view_entered(intent)
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "refresh the case snapshot")
    return RefreshResponse(outcome=outcome, generation=session.get_snapshot().generation)


@router.post("/refresh/foreground", response_model=RefreshResponse, tags=["Snapshot"])
async def foreground_regained(session=Depends(get_client_session)):
    try:
        outcome = await session.on_foreground_regained()
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "refresh the case snapshot")
    return RefreshResponse(outcome=outcome, generation=session.get_snapshot().generation)
