from .case_enums import CaseType, CaseStatus, CourtLevel
from .case import CamelModel, Case, CaseNote, DocumentInfo
from .case_snapshot import CaseSnapshot
from .case_statistics import CaseStatistics

__all__ = [
    "CaseType",
    "CaseStatus",
    "CourtLevel",
    "CamelModel",
    "Case",
    "DocumentInfo",
    "CaseNote",
    "CaseSnapshot",
    "CaseStatistics",
]
