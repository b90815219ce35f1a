# Read-side helpers over the case snapshot
import datetime
import re
from enum import Enum
from typing import List, Optional

from case_tracking_service.app.config import settings
from case_tracking_service.app.models import Case, CaseSnapshot, CaseStatistics, CaseStatus, CaseType
from case_tracking_service.app.service.exceptions import InvalidInputError

CASE_NUMBER_PATTERN = re.compile(r"^CASE-\d{4}(\d{2})?-\d{4}$")


def preview_case_number(now: datetime.datetime) -> str:
    """Display-only case number proposed on the creation form; the server assigns the real one."""
    sequence = int(now.timestamp() * 1000) % 10000
    return f"CASE-{now.year}-{sequence:04d}"


def is_valid_case_number(value: Optional[str]) -> bool:
    return bool(value) and CASE_NUMBER_PATTERN.match(value) is not None


def format_note_entry(text: Optional[str], now: datetime.datetime) -> str:
    if text is None or not text.strip():
        raise InvalidInputError("Note text must not be empty.")
    return f"[{now.strftime('%Y-%m-%d %H:%M:%S')}] {text.strip()}"


def _sort_value(case: Case, attribute: str):
    value = getattr(case, attribute)
    if isinstance(value, Enum):
        value = value.value
    # None sorts first, then values of one type compare among themselves.
    return (value is not None, value if value is not None else 0)


def query_cases(
    snapshot: CaseSnapshot,
    status: Optional[CaseStatus] = None,
    case_type: Optional[CaseType] = None,
    priority: Optional[int] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    descending: bool = False,
) -> List[Case]:
    """
    Filters and sorts the snapshot's cases without touching the snapshot.

    The search term is matched case-insensitively against title, case number and description.
    Sorting is stable and accepts any Case attribute name (snake_case or camelCase).
    """
    cases: List[Case] = list(snapshot.cases)
    if status is not None:
        cases = [case for case in cases if case.status == status]
    if case_type is not None:
        cases = [case for case in cases if case.case_type == case_type]
    if priority is not None:
        cases = [case for case in cases if case.priority == priority]
    if search:
        term = search.lower()
        cases = [
            case for case in cases
            if any(term in (field or "").lower() for field in (case.title, case.case_number, case.description))
        ]
    if sort_by:
        attribute = _resolve_attribute(sort_by)
        cases = sorted(cases, key=lambda case: _sort_value(case, attribute), reverse=descending)
    return cases


def _resolve_attribute(name: str) -> str:
    if name in Case.model_fields:
        return name
    for field_name, field_info in Case.model_fields.items():
        if field_info.alias == name:
            return field_name
    raise InvalidInputError(f"Cannot sort cases by unknown attribute '{name}'.")


def compute_statistics(snapshot: CaseSnapshot) -> CaseStatistics:
    cases = snapshot.cases
    total = len(cases)
    average = round(sum(case.priority for case in cases) / total, 2) if total else 0.0
    return CaseStatistics(
        total_cases=total,
        filed_cases=sum(1 for case in cases if case.status == CaseStatus.FILED),
        scheduled_cases=sum(1 for case in cases if case.status == CaseStatus.SCHEDULED),
        completed_cases=sum(1 for case in cases if case.status == CaseStatus.COMPLETED),
        average_priority=average,
    )


def high_priority_cases(snapshot: CaseSnapshot, threshold: Optional[int] = None) -> List[Case]:
    limit = settings.HIGH_PRIORITY_THRESHOLD if threshold is None else threshold
    return sorted(
        (case for case in snapshot.cases if case.priority >= limit),
        key=lambda case: case.priority,
        reverse=True,
    )


def escalation_eligible_cases(snapshot: CaseSnapshot) -> List[Case]:
    return [case for case in snapshot.cases if case.escalation_eligible]


def unscheduled_cases(snapshot: CaseSnapshot) -> List[Case]:
    """Cases under review with no hearing date yet, most urgent first."""
    return sorted(
        (
            case for case in snapshot.cases
            if case.status == CaseStatus.UNDER_REVIEW and case.hearing_date is None
        ),
        key=lambda case: case.priority,
        reverse=True,
    )


def cases_for_judge(snapshot: CaseSnapshot, judge_id: str) -> List[Case]:
    return [case for case in snapshot.cases if case.assigned_judge_id == judge_id]
