# API Router for case mutations
import datetime
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from case_tracking_service.app.api.errors import to_http_exception
from case_tracking_service.app.dependencies.session import get_client_session
from case_tracking_service.app.models import CamelModel, Case
from case_tracking_service.app.service.commands.models import (
    BaseCommand,
    CreateCaseCommand,
    UpdateCaseCommand,
    UpdateStatusCommand,
    ScheduleHearingCommand,
    AppendNoteCommand,
    SetPriorityCommand,
    RecalculatePriorityCommand,
    EscalateCourtLevelCommand,
    AssignJudgeCommand,
)
from case_tracking_service.app.service.exceptions import BaseCaseTrackingError

logger = logging.getLogger(__name__)
router = APIRouter()


# --- Request bodies (camelCase, like the case API) ---

class CreateCaseRequest(CamelModel):
    case_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    resource_requirement: Optional[str] = None
    estimated_duration_days: Optional[int] = None
    filing_date: Optional[datetime.datetime] = None
    notes: Optional[str] = None


class StatusRequest(CamelModel):
    status: str


class ScheduleHearingRequest(CamelModel):
    hearing_date: datetime.datetime


class NoteRequest(CamelModel):
    note: str


class PriorityRequest(CamelModel):
    priority: Any


class EscalateRequest(CamelModel):
    target_level: str
    reason: Optional[str] = None


class AssignJudgeRequest(CamelModel):
    judge_id: str


async def _execute(session, command: BaseCommand, context: str) -> Case:
    try:
        return await session.execute(command)
    except BaseCaseTrackingError as e:
        raise to_http_exception(e, context)
    except Exception as e:
        logger.error(f"Unexpected error while trying to {context}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to {context}")


@router.post("/cases", response_model=Case, status_code=201, summary="File a new case", tags=["Cases"])
async def create_case_api(request_data: CreateCaseRequest = Body(...), session=Depends(get_client_session)):
    command = CreateCaseCommand(**request_data.model_dump())
    return await _execute(session, command, "create case")


@router.put("/cases/{case_id}", response_model=Case, tags=["Cases"])
async def update_case_api(case_id: str, changes: Dict[str, Any] = Body(...), session=Depends(get_client_session)):
    command = UpdateCaseCommand(case_id=case_id, changes=changes)
    return await _execute(session, command, f"update case {case_id}")


@router.put("/cases/{case_id}/status", response_model=Case, tags=["Cases"])
async def update_status_api(case_id: str, request_data: StatusRequest = Body(...), session=Depends(get_client_session)):
    command = UpdateStatusCommand(case_id=case_id, new_status=request_data.status)
    return await _execute(session, command, f"update status of case {case_id}")


@router.put("/cases/{case_id}/schedule", response_model=Case, tags=["Cases"])
async def schedule_hearing_api(case_id: str, request_data: ScheduleHearingRequest = Body(...), session=Depends(get_client_session)):
    command = ScheduleHearingCommand(case_id=case_id, hearing_date=request_data.hearing_date)
    return await _execute(session, command, f"schedule a hearing for case {case_id}")


@router.post("/cases/{case_id}/notes", response_model=Case, tags=["Cases"])
async def append_note_api(case_id: str, request_data: NoteRequest = Body(...), session=Depends(get_client_session)):
    command = AppendNoteCommand(case_id=case_id, text=request_data.note)
    return await _execute(session, command, f"add a note to case {case_id}")


@router.put("/cases/{case_id}/priority", response_model=Case, tags=["Cases"])
async def set_priority_api(case_id: str, request_data: PriorityRequest = Body(...), session=Depends(get_client_session)):
    command = SetPriorityCommand(case_id=case_id, priority=request_data.priority)
    return await _execute(session, command, f"set the priority of case {case_id}")


@router.post("/cases/{case_id}/priority/recalculate", response_model=Case, summary="Re-derive priority from case age", tags=["Cases"])
async def recalculate_priority_api(case_id: str, session=Depends(get_client_session)):
    command = RecalculatePriorityCommand(case_id=case_id)
    return await _execute(session, command, f"recalculate the priority of case {case_id}")


@router.put("/cases/{case_id}/escalate", response_model=Case, tags=["Cases"])
async def escalate_case_api(case_id: str, request_data: EscalateRequest = Body(...), session=Depends(get_client_session)):
    command = EscalateCourtLevelCommand(case_id=case_id, target_level=request_data.target_level, reason=request_data.reason)
    return await _execute(session, command, f"escalate case {case_id}")


@router.put("/cases/{case_id}/assign-judge", response_model=Case, tags=["Cases"])
async def assign_judge_api(case_id: str, request_data: AssignJudgeRequest = Body(...), session=Depends(get_client_session)):
    command = AssignJudgeCommand(case_id=case_id, judge_id=request_data.judge_id)
    return await _execute(session, command, f"assign a judge to case {case_id}")
