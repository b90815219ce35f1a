# Case priority scoring
#
# The single implementation of the priority rule. Creation-form previews and
# any server-side recomputation mirror must import from here.
import datetime
from typing import Optional, Union

from case_tracking_service.app.models import CaseType, CaseStatus
from case_tracking_service.app.service.exceptions import InvalidInputError

MIN_PRIORITY = 1
MAX_PRIORITY = 10
BASE_PRIORITY = 5

CASE_TYPE_WEIGHTS = {
    CaseType.CONSTITUTIONAL: 3,
    CaseType.CRIMINAL: 2,
    CaseType.FAMILY: 1,
    CaseType.CIVIL: 0,
    CaseType.ADMINISTRATIVE: -1,
}

URGENT_MARKERS = ("urgent", "emergency")
COMPLEXITY_MARKERS = ("special expertise", "complex")

SHORT_CASE_MAX_DAYS = 7
LONG_CASE_MIN_DAYS = 90  # exclusive

AGE_ADJUSTED_STATUSES = frozenset({CaseStatus.FILED, CaseStatus.UNDER_REVIEW})


def clamp_priority(value: int) -> int:
    return max(MIN_PRIORITY, min(MAX_PRIORITY, value))


def parse_case_type(case_type: Union[CaseType, str]) -> CaseType:
    """Resolves a case type, rejecting anything outside the enum rather than defaulting."""
    if isinstance(case_type, CaseType):
        return case_type
    try:
        return CaseType(case_type)
    except ValueError:
        raise InvalidInputError(f"Unknown case type: {case_type!r}.")


def _duration_as_number(estimated_duration_days) -> Optional[float]:
    if estimated_duration_days is None or isinstance(estimated_duration_days, bool):
        return None
    if isinstance(estimated_duration_days, (int, float)):
        return estimated_duration_days
    if isinstance(estimated_duration_days, str):
        try:
            return float(estimated_duration_days.strip())
        except ValueError:
            return None
    return None


def resource_weight(resource_requirement: Optional[str]) -> int:
    if not resource_requirement:
        return 0
    text = resource_requirement.lower()
    weight = 0
    if any(marker in text for marker in URGENT_MARKERS):
        weight += 2
    if any(marker in text for marker in COMPLEXITY_MARKERS):
        weight += 1
    return weight


def duration_weight(estimated_duration_days) -> int:
    days = _duration_as_number(estimated_duration_days)
    if days is None:
        return 0
    if days <= SHORT_CASE_MAX_DAYS:
        return 1
    if days > LONG_CASE_MIN_DAYS:
        return -1
    return 0


def score(
    case_type: Union[CaseType, str],
    resource_requirement: Optional[str] = None,
    estimated_duration_days=None,
) -> int:
    """
    Computes the priority (1-10) of a case from its type, resource text and duration.

    Args:
        case_type: A CaseType or its exact name. Unknown values raise InvalidInputError.
        resource_requirement: Free text; matched case-insensitively for urgency and complexity markers.
        estimated_duration_days: Optional duration. Missing or non-numeric values contribute nothing.

    Returns:
        The clamped priority. Clamping happens once, after all weights are summed.
    """
    total = BASE_PRIORITY
    total += CASE_TYPE_WEIGHTS[parse_case_type(case_type)]
    total += resource_weight(resource_requirement)
    total += duration_weight(estimated_duration_days)
    return clamp_priority(total)


def adjust_for_age(
    priority: int,
    status: CaseStatus,
    filing_date: Optional[datetime.datetime],
    now: datetime.datetime,
) -> int:
    """Raises the priority of cases left waiting in FILED or UNDER_REVIEW."""
    if status not in AGE_ADJUSTED_STATUSES or filing_date is None:
        return priority
    # Naive timestamps are UTC.
    if filing_date.tzinfo is None:
        filing_date = filing_date.replace(tzinfo=datetime.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)
    days_waiting = (now - filing_date).days
    if days_waiting > 90:
        return clamp_priority(priority + 2)
    if days_waiting > 30:
        return clamp_priority(priority + 1)
    return priority
