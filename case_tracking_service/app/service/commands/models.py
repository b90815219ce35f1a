# Pydantic models for Commands
import datetime
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class BaseCommand(BaseModel):
    command_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class CreateCaseCommand(BaseCommand):
    # case_type stays a plain string so an unknown value reaches the priority engine's rejection
    case_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    resource_requirement: Optional[str] = None
    estimated_duration_days: Optional[int] = None
    filing_date: Optional[datetime.datetime] = None
    notes: Optional[str] = None


class UpdateCaseCommand(BaseCommand):
    case_id: str
    # camelCase or snake_case field names mapped to their new values
    changes: Dict[str, Any] = Field(default_factory=dict)


class UpdateStatusCommand(BaseCommand):
    case_id: str
    new_status: str


class ScheduleHearingCommand(BaseCommand):
    case_id: str
    hearing_date: datetime.datetime


class AppendNoteCommand(BaseCommand):
    case_id: str
    text: str


class SetPriorityCommand(BaseCommand):
    case_id: str
    priority: Any  # validated by the lifecycle rules, not coerced here


class RecalculatePriorityCommand(BaseCommand):
    case_id: str


class EscalateCourtLevelCommand(BaseCommand):
    case_id: str
    target_level: str
    reason: Optional[str] = None


class AssignJudgeCommand(BaseCommand):
    case_id: str
    judge_id: str


class UploadDocumentCommand(BaseCommand):
    case_id: str
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    description: Optional[str] = None
