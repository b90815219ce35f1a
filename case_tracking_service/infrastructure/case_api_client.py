# Client for the remote case API (HTTP, JSON)
import datetime
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from case_tracking_service.app.config import settings
from case_tracking_service.app.models import Case, CaseNote, CaseStatistics, CaseStatus, CourtLevel, DocumentInfo
from case_tracking_service.app.service.exceptions import (
    AuthorizationError,
    CaseNotFoundError,
    TransportError,
)
from case_tracking_service.app.service.interfaces.case_api_client import AbstractCaseApiClient

logger = logging.getLogger(__name__)

CASES_PATH = "/api/cases"


class CaseApiClient(AbstractCaseApiClient):
    def __init__(self, http_client: httpx.AsyncClient, base_url: Optional[str] = None):
        self.http_client = http_client
        self.base_url = (base_url or settings.CASE_API_BASE_URL).rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        case_id: Optional[str] = None,
        **kwargs,
    ) -> Any:
        request_url = f"{self.base_url}{path}"
        logger.debug(f"Case API request: {method} {request_url}")
        try:
            response = await self.http_client.request(method, request_url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code in (401, 403):
                logger.warning(f"Case API denied '{action}' with HTTP {status_code}.")
                raise AuthorizationError(action, status_code=status_code)
            if status_code == 404 and case_id is not None:
                logger.warning(f"Case API has no case {case_id} ({method} {path}).")
                raise CaseNotFoundError(case_id)
            logger.error(f"HTTP error calling case API: {status_code} - {e.response.text}", exc_info=True)
            raise TransportError(f"Case API returned HTTP {status_code} for {method} {path}.", status_code=status_code)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling case API {method} {path}: {e}")
            raise TransportError(f"Case API timed out for {method} {path}.")
        except httpx.RequestError as e:
            logger.error(f"Request error calling case API: {e}", exc_info=True)
            raise TransportError(f"Case API unreachable for {method} {path}: {e}")

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Case API returned a non-JSON body for {method} {path}: {e}")
            raise TransportError(f"Malformed response body for {method} {path}.", status_code=response.status_code)

    @staticmethod
    def _parse_case(data: Any) -> Case:
        try:
            return Case.model_validate(data)
        except ValidationError as e:
            logger.error(f"Case API returned an invalid case record: {e}")
            raise TransportError(f"Invalid case record in response: {e.error_count()} validation errors.")

    @classmethod
    def _parse_cases(cls, data: Any) -> List[Case]:
        if not isinstance(data, list):
            raise TransportError("Expected a list of cases in response.")
        return [cls._parse_case(item) for item in data]

    # --- Reads ---

    async def list_cases(self) -> List[Case]:
        data = await self._request("GET", CASES_PATH, action="list cases")
        cases = self._parse_cases(data)
        logger.info(f"Fetched {len(cases)} cases from case API.")
        return cases

    async def get_case(self, case_id: str) -> Case:
        data = await self._request("GET", f"{CASES_PATH}/{case_id}", action="view case", case_id=case_id)
        return self._parse_case(data)

    async def get_statistics(self) -> CaseStatistics:
        data = await self._request("GET", f"{CASES_PATH}/statistics", action="view case statistics")
        try:
            return CaseStatistics.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Invalid statistics in response: {e.error_count()} validation errors.")

    async def list_high_priority_cases(self) -> List[Case]:
        data = await self._request("GET", f"{CASES_PATH}/high-priority", action="list high priority cases")
        return self._parse_cases(data)

    async def list_escalation_eligible_cases(self) -> List[Case]:
        data = await self._request("GET", f"{CASES_PATH}/escalation-eligible", action="list escalation eligible cases")
        return self._parse_cases(data)

    async def list_unscheduled_cases(self) -> List[Case]:
        data = await self._request("GET", f"{CASES_PATH}/unscheduled", action="list unscheduled cases")
        return self._parse_cases(data)

    async def list_cases_by_judge(self, judge_id: str) -> List[Case]:
        data = await self._request("GET", f"{CASES_PATH}/judge/{judge_id}", action="list cases by judge")
        return self._parse_cases(data)

    async def list_case_notes(self, case_id: str) -> List[CaseNote]:
        data = await self._request("GET", f"{CASES_PATH}/{case_id}/notes", action="view case notes", case_id=case_id)
        if not isinstance(data, list):
            raise TransportError("Expected a list of notes in response.")
        try:
            return [CaseNote.model_validate(item) for item in data]
        except ValidationError as e:
            raise TransportError(f"Invalid note record in response: {e.error_count()} validation errors.")

    # --- Mutations (each returns the updated case) ---

    async def create_case(self, fields: Dict[str, Any]) -> Case:
        data = await self._request("POST", CASES_PATH, action="create case", json=fields)
        return self._parse_case(data)

    async def update_case(self, case_id: str, fields: Dict[str, Any]) -> Case:
        data = await self._request("PUT", f"{CASES_PATH}/{case_id}", action="update case", case_id=case_id, json=fields)
        return self._parse_case(data)

    async def update_status(self, case_id: str, status: CaseStatus) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/status",
            action="update case status", case_id=case_id,
            params={"status": CaseStatus(status).value},
        )
        return self._parse_case(data)

    async def schedule_hearing(self, case_id: str, hearing_date: datetime.datetime) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/schedule",
            action="schedule hearing", case_id=case_id,
            params={"hearingDate": hearing_date.isoformat()},
        )
        return self._parse_case(data)

    async def append_note(self, case_id: str, note_entry: str) -> Case:
        data = await self._request(
            "POST", f"{CASES_PATH}/{case_id}/notes",
            action="add case note", case_id=case_id,
            json={"note": note_entry},
        )
        if isinstance(data, dict) and "caseNumber" in data:
            return self._parse_case(data)
        # The note endpoint may answer with the stored note record instead of the case.
        logger.debug(f"Note endpoint for case {case_id} returned a note record; re-reading the case.")
        return await self.get_case(case_id)

    async def set_priority(self, case_id: str, priority: int) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/set-priority",
            action="set case priority", case_id=case_id,
            params={"priority": priority},
        )
        return self._parse_case(data)

    async def recalculate_priority(self, case_id: str) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/priority",
            action="recalculate case priority", case_id=case_id,
        )
        return self._parse_case(data)

    async def escalate(self, case_id: str, target_level: CourtLevel, reason: Optional[str]) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/escalate",
            action="escalate case", case_id=case_id,
            json={"targetLevel": CourtLevel(target_level).value, "reason": reason},
        )
        return self._parse_case(data)

    async def assign_judge(self, case_id: str, judge_id: str) -> Case:
        data = await self._request(
            "PUT", f"{CASES_PATH}/{case_id}/assign-judge",
            action="assign judge", case_id=case_id,
            params={"judgeId": judge_id},
        )
        return self._parse_case(data)

    async def upload_document(
        self,
        case_id: str,
        filename: str,
        content: bytes,
        content_type: str,
        description: Optional[str] = None,
    ) -> DocumentInfo:
        form_data = {"description": description} if description else None
        data = await self._request(
            "POST", f"{CASES_PATH}/{case_id}/documents",
            action="upload document", case_id=case_id,
            files={"file": (filename, content, content_type)},
            data=form_data,
        )
        try:
            return DocumentInfo.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Invalid document record in response: {e.error_count()} validation errors.")


def build_http_client() -> httpx.AsyncClient:
    """Creates the shared AsyncClient with the configured timeout and optional basic credentials."""
    auth = None
    if settings.CASE_API_USERNAME and settings.CASE_API_PASSWORD:
        auth = httpx.BasicAuth(settings.CASE_API_USERNAME, settings.CASE_API_PASSWORD)
    return httpx.AsyncClient(timeout=settings.DEFAULT_HTTP_TIMEOUT, auth=auth)
