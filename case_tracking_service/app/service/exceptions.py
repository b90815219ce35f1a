"""
Custom exceptions for the Case Tracking client.
"""
import datetime
from typing import Optional


class BaseCaseTrackingError(Exception):
    """Base class for exceptions in this module."""
    pass

# --- Validation: rejected locally, before any network call ---

class CaseValidationError(BaseCaseTrackingError):
    """Raised when a request is rejected by local validation."""
    pass

class InvalidInputError(CaseValidationError):
    """Raised for malformed input such as an unknown case type."""
    pass

class IllegalTransitionError(CaseValidationError):
    """Raised when a requested status transition is not in the legal-transition table."""
    def __init__(self, case_id: Optional[str], current_status: str, requested_status: str):
        self.case_id = case_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Cannot move case '{case_id}' from status '{current_status}' to '{requested_status}'."
        )

class IllegalEscalationError(CaseValidationError):
    """Raised when a court-level change would decrease, skip or repeat a level."""
    def __init__(self, case_id: Optional[str], current_level: str, requested_level: str):
        self.case_id = case_id
        self.current_level = current_level
        self.requested_level = requested_level
        super().__init__(
            f"Cannot move case '{case_id}' from court level '{current_level}' to '{requested_level}'."
        )

class InvalidPriorityError(CaseValidationError):
    """Raised when a manual priority override is outside [1, 10]."""
    def __init__(self, priority):
        self.priority = priority
        super().__init__(f"Priority must be an integer between 1 and 10, got {priority!r}.")

class InvalidHearingDateError(CaseValidationError):
    """Raised when a hearing date is not strictly in the future."""
    def __init__(self, hearing_date: datetime.datetime, now: datetime.datetime):
        self.hearing_date = hearing_date
        self.now = now
        super().__init__(
            f"Hearing date {hearing_date.isoformat()} must be after {now.isoformat()}."
        )

class ImmutableFieldError(CaseValidationError):
    """Raised when an update tries to change a field fixed at creation."""
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' cannot be changed after creation.")

# --- Remote failures ---

class TransportError(BaseCaseTrackingError):
    """Raised for network failures, timeouts, non-2xx responses and malformed bodies."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

class CaseNotFoundError(TransportError):
    """Raised when the backend has no case with the requested ID."""
    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case with ID '{case_id}' not found.", status_code=404)

class AuthorizationError(BaseCaseTrackingError):
    """Raised when an action is not available to the current role."""
    def __init__(self, action: str, role: Optional[str] = None, status_code: Optional[int] = None):
        self.action = action
        self.role = role
        self.status_code = status_code
        if role:
            message = f"Role '{role}' is not allowed to {action}."
        else:
            message = f"Not authorized to {action}."
        super().__init__(message)

class ConfigurationError(BaseCaseTrackingError):
    """Raised when a configuration issue is detected."""
    pass
