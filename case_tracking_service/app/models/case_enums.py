from enum import Enum


class CaseType(str, Enum):
    CONSTITUTIONAL = "CONSTITUTIONAL"
    CRIMINAL = "CRIMINAL"
    CIVIL = "CIVIL"
    FAMILY = "FAMILY"
    ADMINISTRATIVE = "ADMINISTRATIVE"


class CaseStatus(str, Enum):
    FILED = "FILED"
    UNDER_REVIEW = "UNDER_REVIEW"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DISMISSED = "DISMISSED"


class CourtLevel(str, Enum):
    # Declaration order is escalation order.
    DISTRICT = "DISTRICT"
    HIGH = "HIGH"
    SUPREME = "SUPREME"

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} Court"
