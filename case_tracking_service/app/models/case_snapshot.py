import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .case import Case


class CaseSnapshot(BaseModel):
    """Immutable view of the case collection as last accepted by the freshness controller."""
    model_config = ConfigDict(frozen=True)

    cases: Tuple[Case, ...] = ()
    fetched_at: Optional[datetime.datetime] = None
    generation: int = 0

    @classmethod
    def empty(cls) -> "CaseSnapshot":
        return cls()

    def get(self, case_id: str) -> Optional[Case]:
        for case in self.cases:
            if case.id == case_id:
                return case
        return None
