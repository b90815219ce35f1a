import datetime
import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .case_enums import CaseType, CaseStatus, CourtLevel


class CamelModel(BaseModel):
    """Base for records exchanged with the case API (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentInfo(CamelModel):
    id: Optional[str] = None
    original_file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    upload_date: Optional[datetime.datetime] = None
    url: Optional[str] = None
    description: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _opaque_id(cls, value):
        return None if value is None else str(value)


class CaseNote(CamelModel):
    """One entry of a case's note history as listed by the case API."""
    id: Optional[str] = None
    note: str
    created_at: Optional[datetime.datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _opaque_id(cls, value):
        return None if value is None else str(value)


class Case(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    case_number: str
    title: Optional[str] = None
    description: Optional[str] = None
    case_type: CaseType
    status: CaseStatus = CaseStatus.FILED
    court_level: CourtLevel = CourtLevel.DISTRICT
    priority: int = Field(default=5, ge=1, le=10)
    resource_requirement: Optional[str] = None
    estimated_duration_days: Optional[int] = None
    filing_date: Optional[datetime.datetime] = None
    hearing_date: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    notes: Optional[str] = None
    documents: List[DocumentInfo] = Field(default_factory=list)
    assigned_judge_id: Optional[str] = None
    escalation_eligible: Optional[bool] = None

    @field_validator("id", "assigned_judge_id", mode="before")
    @classmethod
    def _opaque_id(cls, value):
        return None if value is None else str(value)

    @field_validator("documents", mode="before")
    @classmethod
    def _documents_from_json_text(cls, value):
        # The backend stores the document list as a JSON string column.
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value
