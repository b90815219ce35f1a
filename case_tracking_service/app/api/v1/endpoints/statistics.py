# API Router for statistics and case subsets
import logging
from enum import Enum
from typing import List

from fastapi import APIRouter, Depends

from case_tracking_service.app.api.errors import to_http_exception
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import Case, CaseNote, CaseStatistics
from case_tracking_service.app.service import queries
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError

logger = logging.getLogger(__name__)
router = APIRouter()


class DataSource(str, Enum):
    REMOTE = "remote"  # ask the case API
    LOCAL = "local"    # derive from the snapshot held by this session


@router.get("/statistics", response_model=CaseStatistics, tags=["Statistics"])
async def get_statistics(source: DataSource = DataSource.REMOTE, session=Depends(get_client_session)):
    if source == DataSource.LOCAL:
        return queries.compute_statistics(session.get_snapshot())
    try:
        return await session.api_client.get_statistics()
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "retrieve case statistics")


@router.get("/cases/subsets/high-priority", response_model=List[Case], tags=["Cases"])
async def get_high_priority_cases(source: DataSource = DataSource.REMOTE, session=Depends(get_client_session)):
    if source == DataSource.LOCAL:
        return queries.high_priority_cases(session.get_snapshot())
    try:
        return await session.api_client.list_high_priority_cases()
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "list high priority cases")


@router.get("/cases/subsets/escalation-eligible", response_model=List[Case], tags=["Cases"])
async def get_escalation_eligible_cases(source: DataSource = DataSource.REMOTE, session=Depends(get_client_session)):
    if source == DataSource.LOCAL:
        return queries.escalation_eligible_cases(session.get_snapshot())
    try:
        return await session.api_client.list_escalation_eligible_cases()
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "list escalation eligible cases")


@router.get("/cases/subsets/unscheduled", response_model=List[Case], tags=["Cases"])
async def get_unscheduled_cases(source: DataSource = DataSource.REMOTE, session=Depends(get_client_session)):
    if source == DataSource.LOCAL:
        return queries.unscheduled_cases(session.get_snapshot())
    try:
        return await session.api_client.list_unscheduled_cases()
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, "list unscheduled cases")


@router.get("/cases/subsets/judge/{judge_id}", response_model=List[Case], tags=["Cases"])
async def get_cases_for_judge(judge_id: str, source: DataSource = DataSource.REMOTE, session=Depends(get_client_session)):
    if source == DataSource.LOCAL:
        return queries.cases_for_judge(session.get_snapshot(), judge_id)
    try:
        return await session.api_client.list_cases_by_judge(judge_id)
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, f"list cases assigned to judge {judge_id}")


@router.get("/cases/{case_id}/notes", response_model=List[CaseNote], tags=["Cases"])
async def get_case_notes(case_id: str, session=Depends(get_client_session)):
    # Note history lives only on the server; the snapshot carries the flattened notes text.
    try:
        return await session.api_client.list_case_notes(case_id)
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, f"list notes of case {case_id}")
