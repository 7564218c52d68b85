from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from ..core.enums import Operation, Role
from ..core.exceptions import AccessDeniedError
from ..users.model import Principal
from .model import Employee

LOGGER = logging.getLogger(__name__)

# Operations allowed per role regardless of the target record.
_ROLE_GATES: dict[Operation, frozenset[Role]] = {
    Operation.LIST: frozenset({Role.ADMIN, Role.EMPLOYEE}),
    Operation.CREATE: frozenset({Role.ADMIN}),
    Operation.DELETE: frozenset({Role.ADMIN}),
    Operation.VIEW: frozenset({Role.ADMIN, Role.EMPLOYEE}),
    Operation.UPDATE: frozenset({Role.ADMIN, Role.EMPLOYEE}),
    Operation.MARK_ATTENDANCE: frozenset({Role.ADMIN, Role.EMPLOYEE}),
}

_SINGLE_RECORD_OPS = frozenset({Operation.VIEW, Operation.UPDATE, Operation.MARK_ATTENDANCE})


class AccessDecision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"

    @property
    def allowed(self) -> bool:
        return self is AccessDecision.ALLOW


class AccessGuard:
    """Ownership/role based access control for directory operations.

    ADMIN may do anything. EMPLOYEE may list, and may view/update/mark
    attendance only on the employee whose linked user is the principal.
    """

    def can_access(self, principal: Principal, target: Optional[Employee], operation: Operation) -> AccessDecision:
        if principal.role == Role.ADMIN:
            return AccessDecision.ALLOW

        if principal.role not in _ROLE_GATES.get(operation, frozenset()):
            return AccessDecision.DENY

        if operation in _SINGLE_RECORD_OPS:
            if target is None or target.owner_username is None:
                return AccessDecision.DENY
            if target.owner_username != principal.username:
                return AccessDecision.DENY

        return AccessDecision.ALLOW

    def check(self, principal: Principal, target: Optional[Employee], operation: Operation) -> None:
        if self.can_access(principal, target, operation).allowed:
            return
        target_id = target.employee_id if target is not None else None
        LOGGER.warning(
            "Access denied: user=%s role=%s operation=%s employee=%s",
            principal.username,
            principal.role.value,
            operation.value,
            target_id,
        )
        if target is None:
            raise AccessDeniedError(f"Access denied: {operation.value} requires the ADMIN role")
        raise AccessDeniedError("Access denied: you can only access your own employee profile")
