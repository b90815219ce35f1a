# Client-side role gate for mutating actions
import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from case_tracking_service.app.service.exceptions import AuthorizationError, InvalidInputError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "ADMIN"
    JUDGE = "JUDGE"
    CLERK = "CLERK"


class CaseAction(str, Enum):
    CREATE = "create case"
    UPDATE = "update case"
    UPDATE_STATUS = "update case status"
    SCHEDULE_HEARING = "schedule hearing"
    APPEND_NOTE = "add case note"
    SET_PRIORITY = "set case priority"
    RECALCULATE_PRIORITY = "recalculate case priority"
    ESCALATE = "escalate case"
    ASSIGN_JUDGE = "assign judge"
    UPLOAD_DOCUMENT = "upload document"


ACTION_ROLES: Dict[CaseAction, FrozenSet[Role]] = {
    CaseAction.CREATE: frozenset({Role.CLERK, Role.ADMIN}),
    CaseAction.UPLOAD_DOCUMENT: frozenset({Role.CLERK, Role.ADMIN}),
    CaseAction.UPDATE: frozenset({Role.ADMIN, Role.JUDGE, Role.CLERK}),
    CaseAction.UPDATE_STATUS: frozenset({Role.ADMIN, Role.JUDGE}),
    CaseAction.SCHEDULE_HEARING: frozenset({Role.ADMIN, Role.JUDGE}),
    CaseAction.SET_PRIORITY: frozenset({Role.ADMIN}),
    CaseAction.RECALCULATE_PRIORITY: frozenset({Role.ADMIN}),
    CaseAction.ASSIGN_JUDGE: frozenset({Role.ADMIN}),
    CaseAction.APPEND_NOTE: frozenset({Role.JUDGE}),
    CaseAction.ESCALATE: frozenset({Role.ADMIN, Role.JUDGE}),
}


def parse_role(role: Optional[str]) -> Optional[Role]:
    if role is None or role == "":
        return None
    if isinstance(role, Role):
        return role
    try:
        return Role(role.upper())
    except ValueError:
        raise InvalidInputError(f"Unknown role: {role!r}.")


def is_allowed(role: Optional[str], action: CaseAction) -> bool:
    resolved = parse_role(role)
    # No configured role means the backend is the only gate.
    if resolved is None:
        return True
    return resolved in ACTION_ROLES[action]


def ensure_allowed(role: Optional[str], action: CaseAction) -> None:
    if not is_allowed(role, action):
        logger.warning(f"Role {role} attempted '{action.value}' which it is not permitted to perform.")
        raise AuthorizationError(action.value, role=parse_role(role).value)
