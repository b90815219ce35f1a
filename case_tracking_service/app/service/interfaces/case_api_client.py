from abc import ABC, abstractmethod
import datetime
from typing import Any, Dict, List, Optional

from case_tracking_service.app.models import Case, CaseNote, CaseStatistics, CaseStatus, CourtLevel, DocumentInfo


class AbstractCaseApiClient(ABC):
    """The remote case API as seen by the client. Implementations raise the service exceptions, never transport-specific ones."""

    @abstractmethod
    async def list_cases(self) -> List[Case]:
        pass

    @abstractmethod
    async def get_case(self, case_id: str) -> Case:
        pass

    @abstractmethod
    async def get_statistics(self) -> CaseStatistics:
        pass

    @abstractmethod
    async def list_high_priority_cases(self) -> List[Case]:
        pass

    @abstractmethod
    async def list_escalation_eligible_cases(self) -> List[Case]:
        pass

    @abstractmethod
    async def list_unscheduled_cases(self) -> List[Case]:
        pass

    @abstractmethod
    async def list_cases_by_judge(self, judge_id: str) -> List[Case]:
        pass

    @abstractmethod
    async def list_case_notes(self, case_id: str) -> List[CaseNote]:
        """Lists the note history the server keeps for a case, oldest first as returned."""
        pass

    @abstractmethod
    async def create_case(self, fields: Dict[str, Any]) -> Case:
        """
        Files a new case.

        Args:
            fields: camelCase case attributes. The server assigns id and final caseNumber.

        Returns:
            The created Case as stored by the server.
        """
        pass

    @abstractmethod
    async def update_case(self, case_id: str, fields: Dict[str, Any]) -> Case:
        pass

    @abstractmethod
    async def update_status(self, case_id: str, status: CaseStatus) -> Case:
        pass

    @abstractmethod
    async def schedule_hearing(self, case_id: str, hearing_date: datetime.datetime) -> Case:
        pass

    @abstractmethod
    async def append_note(self, case_id: str, note_entry: str) -> Case:
        pass

    @abstractmethod
    async def set_priority(self, case_id: str, priority: int) -> Case:
        pass

    @abstractmethod
    async def recalculate_priority(self, case_id: str) -> Case:
        """Asks the server to re-derive the priority from the case's age and status."""
        pass

    @abstractmethod
    async def escalate(self, case_id: str, target_level: CourtLevel, reason: Optional[str]) -> Case:
        pass

    @abstractmethod
    async def assign_judge(self, case_id: str, judge_id: str) -> Case:
        pass

    @abstractmethod
    async def upload_document(
        self,
        case_id: str,
        filename: str,
        content: bytes,
        content_type: str,
        description: Optional[str] = None,
    ) -> DocumentInfo:
        pass
