# Unit Tests for the case lifecycle rules
import datetime
import itertools
import pytest

from case_tracking_service.app.models import CaseStatus, CourtLevel
from case_tracking_service.app.service.exceptions import (
    IllegalEscalationError,
    IllegalTransitionError,
    InvalidHearingDateError,
    InvalidInputError,
    InvalidPriorityError,
)
from case_tracking_service.app.service.lifecycle import state_machine


LEGAL = {
    (CaseStatus.FILED, CaseStatus.UNDER_REVIEW),
    (CaseStatus.FILED, CaseStatus.DISMISSED),
    (CaseStatus.UNDER_REVIEW, CaseStatus.SCHEDULED),
    (CaseStatus.UNDER_REVIEW, CaseStatus.DISMISSED),
    (CaseStatus.SCHEDULED, CaseStatus.IN_PROGRESS),
    (CaseStatus.SCHEDULED, CaseStatus.DISMISSED),
    (CaseStatus.IN_PROGRESS, CaseStatus.COMPLETED),
    (CaseStatus.IN_PROGRESS, CaseStatus.DISMISSED),
}

NOW = datetime.datetime(2026, 3, 1, 9, 0, tzinfo=datetime.timezone.utc)


# --- Status transitions ---

@pytest.mark.parametrize("current, target", sorted(LEGAL))
def test_legal_transitions_are_accepted(current, target):
    assert state_machine.validate_status_transition("c-1", current, target) == target

def test_every_other_transition_is_rejected():
    for current, target in itertools.product(CaseStatus, CaseStatus):
        if (current, target) in LEGAL:
            continue
        with pytest.raises(IllegalTransitionError) as exc_info:
            state_machine.validate_status_transition("c-1", current, target)
        assert exc_info.value.current_status == current.value
        assert exc_info.value.requested_status == target.value

@pytest.mark.parametrize("terminal", [CaseStatus.COMPLETED, CaseStatus.DISMISSED])
def test_terminal_statuses_accept_nothing(terminal):
    assert state_machine.is_terminal(terminal)
    assert state_machine.allowed_transitions(terminal) == frozenset()

def test_transition_accepts_raw_status_names():
    assert state_machine.validate_status_transition("c-1", "FILED", "UNDER_REVIEW") == CaseStatus.UNDER_REVIEW

def test_unknown_status_is_invalid_input():
    with pytest.raises(InvalidInputError):
        state_machine.validate_status_transition("c-1", CaseStatus.FILED, "ARCHIVED")


# --- Scheduling ---

def test_scheduling_from_under_review_moves_to_scheduled():
    assert state_machine.status_after_scheduling("c-1", CaseStatus.UNDER_REVIEW) == CaseStatus.SCHEDULED

def test_rescheduling_keeps_scheduled():
    assert state_machine.status_after_scheduling("c-1", CaseStatus.SCHEDULED) == CaseStatus.SCHEDULED

@pytest.mark.parametrize("status", [CaseStatus.FILED, CaseStatus.IN_PROGRESS, CaseStatus.COMPLETED, CaseStatus.DISMISSED])
def test_scheduling_from_other_statuses_is_rejected(status):
    with pytest.raises(IllegalTransitionError) as exc_info:
        state_machine.status_after_scheduling("c-1", status)
    assert exc_info.value.requested_status == "SCHEDULED"

def test_hearing_date_must_be_strictly_future():
    with pytest.raises(InvalidHearingDateError):
        state_machine.validate_hearing_date(NOW, NOW)
    with pytest.raises(InvalidHearingDateError):
        state_machine.validate_hearing_date(NOW - datetime.timedelta(seconds=1), NOW)

def test_future_hearing_date_is_returned_in_utc():
    later = datetime.datetime(2026, 3, 1, 11, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=1)))
    result = state_machine.validate_hearing_date(later, NOW)
    assert result == datetime.datetime(2026, 3, 1, 10, 0, tzinfo=datetime.timezone.utc)
    assert result.utcoffset() == datetime.timedelta(0)

def test_naive_hearing_date_is_read_as_utc():
    naive = datetime.datetime(2026, 3, 1, 9, 0, 1)
    assert state_machine.validate_hearing_date(naive, NOW).tzinfo is not None


# --- Escalation ---

def test_escalation_steps_up_in_order():
    assert state_machine.validate_escalation("c-1", CourtLevel.DISTRICT, CourtLevel.HIGH) == CourtLevel.HIGH
    assert state_machine.validate_escalation("c-1", CourtLevel.HIGH, "SUPREME") == CourtLevel.SUPREME

@pytest.mark.parametrize("current, target", [
    (CourtLevel.DISTRICT, CourtLevel.SUPREME),  # skip
    (CourtLevel.HIGH, CourtLevel.DISTRICT),     # decrease
    (CourtLevel.SUPREME, CourtLevel.HIGH),
    (CourtLevel.HIGH, CourtLevel.HIGH),         # same
    (CourtLevel.SUPREME, CourtLevel.SUPREME),
])
def test_escalation_rejects_skip_decrease_and_same(current, target):
    with pytest.raises(IllegalEscalationError):
        state_machine.validate_escalation("c-1", current, target)

def test_next_court_level():
    assert state_machine.next_court_level(CourtLevel.DISTRICT) == CourtLevel.HIGH
    assert state_machine.next_court_level(CourtLevel.SUPREME) is None


# --- Priority override ---

@pytest.mark.parametrize("priority", [1, 5, 10])
def test_priority_override_in_range(priority):
    assert state_machine.validate_priority_override(priority) == priority

@pytest.mark.parametrize("priority", [0, 11, -1, 5.5, "7", True, None])
def test_priority_override_rejected(priority):
    with pytest.raises(InvalidPriorityError):
        state_machine.validate_priority_override(priority)


# --- Descriptions ---

def test_descriptions():
    assert state_machine.describe_status_change(CaseStatus.FILED, CaseStatus.UNDER_REVIEW) == "Status changed from FILED to UNDER_REVIEW"
    assert state_machine.describe_escalation(CourtLevel.DISTRICT, CourtLevel.HIGH) == "Case escalated from District Court to High Court"
