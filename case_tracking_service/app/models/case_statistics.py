from .case import CamelModel


class CaseStatistics(CamelModel):
    total_cases: int = 0
    filed_cases: int = 0
    scheduled_cases: int = 0
    completed_cases: int = 0
    average_priority: float = 0.0
