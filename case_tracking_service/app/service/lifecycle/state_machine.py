# Case status and court-level state machine
import datetime
import logging
from typing import Dict, FrozenSet, Optional

from case_tracking_service.app.models import CaseStatus, CourtLevel
from case_tracking_service.app.service.exceptions import (
    IllegalTransitionError,
    IllegalEscalationError,
    InvalidPriorityError,
    InvalidHearingDateError,
    InvalidInputError,
)
from case_tracking_service.app.service.priority.engine import MIN_PRIORITY, MAX_PRIORITY

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.FILED: frozenset({CaseStatus.UNDER_REVIEW, CaseStatus.DISMISSED}),
    CaseStatus.UNDER_REVIEW: frozenset({CaseStatus.SCHEDULED, CaseStatus.DISMISSED}),
    CaseStatus.SCHEDULED: frozenset({CaseStatus.IN_PROGRESS, CaseStatus.DISMISSED}),
    CaseStatus.IN_PROGRESS: frozenset({CaseStatus.COMPLETED, CaseStatus.DISMISSED}),
    CaseStatus.COMPLETED: frozenset(),
    CaseStatus.DISMISSED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in STATUS_TRANSITIONS.items() if not targets)

# Statuses from which a hearing may be (re)scheduled.
SCHEDULABLE_STATUSES = frozenset({CaseStatus.UNDER_REVIEW, CaseStatus.SCHEDULED})


def parse_status(status) -> CaseStatus:
    if isinstance(status, CaseStatus):
        return status
    try:
        return CaseStatus(status)
    except ValueError:
        raise InvalidInputError(f"Unknown case status: {status!r}.")


def parse_level(level) -> CourtLevel:
    if isinstance(level, CourtLevel):
        return level
    try:
        return CourtLevel(level)
    except ValueError:
        raise InvalidInputError(f"Unknown court level: {level!r}.")


def allowed_transitions(status: CaseStatus) -> FrozenSet[CaseStatus]:
    return STATUS_TRANSITIONS[parse_status(status)]


def is_terminal(status: CaseStatus) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def can_transition(current: CaseStatus, target: CaseStatus) -> bool:
    return parse_status(target) in allowed_transitions(current)


def validate_status_transition(case_id: Optional[str], current: CaseStatus, target) -> CaseStatus:
    """Returns the target status if the move is legal, raising IllegalTransitionError otherwise."""
    current_status = parse_status(current)
    target_status = parse_status(target)
    if target_status not in STATUS_TRANSITIONS[current_status]:
        logger.info(f"Rejected status transition {current_status.value} -> {target_status.value} for case {case_id}")
        raise IllegalTransitionError(case_id, current_status.value, target_status.value)
    return target_status


def status_after_scheduling(case_id: Optional[str], current: CaseStatus) -> CaseStatus:
    """Scheduling moves UNDER_REVIEW to SCHEDULED; a SCHEDULED case may be rescheduled in place."""
    current_status = parse_status(current)
    if current_status not in SCHEDULABLE_STATUSES:
        raise IllegalTransitionError(case_id, current_status.value, CaseStatus.SCHEDULED.value)
    return CaseStatus.SCHEDULED


def as_utc(moment: datetime.datetime) -> datetime.datetime:
    # Naive timestamps are read as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc)


def validate_hearing_date(hearing_date: datetime.datetime, now: datetime.datetime) -> datetime.datetime:
    hearing_utc = as_utc(hearing_date)
    now_utc = as_utc(now)
    if hearing_utc <= now_utc:
        raise InvalidHearingDateError(hearing_utc, now_utc)
    return hearing_utc


def next_court_level(level: CourtLevel) -> Optional[CourtLevel]:
    levels = list(CourtLevel)
    index = levels.index(parse_level(level))
    return levels[index + 1] if index + 1 < len(levels) else None


def validate_escalation(case_id: Optional[str], current: CourtLevel, target) -> CourtLevel:
    """Only a single step up (DISTRICT->HIGH, HIGH->SUPREME) is accepted."""
    current_level = parse_level(current)
    target_level = parse_level(target)
    if target_level != next_court_level(current_level):
        logger.info(f"Rejected escalation {current_level.value} -> {target_level.value} for case {case_id}")
        raise IllegalEscalationError(case_id, current_level.value, target_level.value)
    return target_level


def validate_priority_override(priority) -> int:
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise InvalidPriorityError(priority)
    if priority < MIN_PRIORITY or priority > MAX_PRIORITY:
        raise InvalidPriorityError(priority)
    return priority


def describe_status_change(previous: CaseStatus, new: CaseStatus) -> str:
    return f"Status changed from {parse_status(previous).value} to {parse_status(new).value}"


def describe_escalation(previous: CourtLevel, new: CourtLevel) -> str:
    return f"Case escalated from {parse_level(previous).display_name} to {parse_level(new).display_name}"
