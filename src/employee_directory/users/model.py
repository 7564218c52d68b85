from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: ``password_hash`` never leaves the service layer.
    """

    user_id: int
    username: str
    password_hash: str
    role: Role
    employee_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Principal:
    """Authenticated identity and role attached to one operation."""

    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
