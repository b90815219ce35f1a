# Pydantic models for Domain Events
import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, Field

from case_tracking_service.app.models import Case, CaseStatus, CourtLevel


class BaseEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str
    aggregate_id: str  # case id
    timestamp: datetime.datetime = Field(default_factory=lambda: datetime.datetime.now(datetime.UTC))
    payload: BaseModel
    payload_model_name: Optional[str] = None


# --- Payloads ---
# Every payload carries the server-confirmed case so projectors can reconcile without a refetch.

class CaseChangedPayload(BaseModel):
    case: Case


class CaseStatusChangedPayload(CaseChangedPayload):
    previous_status: CaseStatus
    new_status: CaseStatus
    description: str


class HearingScheduledPayload(CaseChangedPayload):
    hearing_date: datetime.datetime
    previous_status: CaseStatus
    new_status: CaseStatus


class NoteAppendedPayload(CaseChangedPayload):
    note_entry: str


class PriorityOverriddenPayload(CaseChangedPayload):
    previous_priority: int
    new_priority: int


class PriorityRecalculatedPayload(CaseChangedPayload):
    previous_priority: int
    new_priority: int
    expected_priority: int


class CourtLevelEscalatedPayload(CaseChangedPayload):
    previous_level: CourtLevel
    new_level: CourtLevel
    reason: Optional[str] = None
    description: str


class JudgeAssignedPayload(CaseChangedPayload):
    judge_id: str


class DocumentUploadedPayload(CaseChangedPayload):
    file_name: str


# --- Events ---

class CaseCreatedEvent(BaseEvent):
    event_type: str = "CaseCreated"
    payload: CaseChangedPayload
    payload_model_name: str = "CaseChangedPayload"


class CaseUpdatedEvent(BaseEvent):
    event_type: str = "CaseUpdated"
    payload: CaseChangedPayload
    payload_model_name: str = "CaseChangedPayload"


class CaseStatusChangedEvent(BaseEvent):
    event_type: str = "CaseStatusChanged"
    payload: CaseStatusChangedPayload
    payload_model_name: str = "CaseStatusChangedPayload"


class HearingScheduledEvent(BaseEvent):
    event_type: str = "HearingScheduled"
    payload: HearingScheduledPayload
    payload_model_name: str = "HearingScheduledPayload"


class NoteAppendedEvent(BaseEvent):
    event_type: str = "NoteAppended"
    payload: NoteAppendedPayload
    payload_model_name: str = "NoteAppendedPayload"


class PriorityOverriddenEvent(BaseEvent):
    event_type: str = "PriorityOverridden"
    payload: PriorityOverriddenPayload
    payload_model_name: str = "PriorityOverriddenPayload"


class PriorityRecalculatedEvent(BaseEvent):
    event_type: str = "PriorityRecalculated"
    payload: PriorityRecalculatedPayload
    payload_model_name: str = "PriorityRecalculatedPayload"


class CourtLevelEscalatedEvent(BaseEvent):
    event_type: str = "CourtLevelEscalated"
    payload: CourtLevelEscalatedPayload
    payload_model_name: str = "CourtLevelEscalatedPayload"


class JudgeAssignedEvent(BaseEvent):
    event_type: str = "JudgeAssigned"
    payload: JudgeAssignedPayload
    payload_model_name: str = "JudgeAssignedPayload"


class DocumentUploadedEvent(BaseEvent):
    event_type: str = "DocumentUploaded"
    payload: DocumentUploadedPayload
    payload_model_name: str = "DocumentUploadedPayload"
