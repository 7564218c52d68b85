from __future__ import annotations

from typing import Any, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository

_SELECT_USERS = """
    SELECT user_id, username, password_hash, role, employee_id, created_at
    FROM users
"""


def _to_user(row: dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        employee_id=int(row["employee_id"]) if row.get("employee_id") is not None else None,
        created_at=row["created_at"],
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_USERS + " WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_USERS + " WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        role: Role,
        employee_id: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, password_hash, role, employee_id)
                VALUES(%s,%s,%s,%s)
                """,
                (username, password_hash, role.value, employee_id),
            )
            return int(cur.lastrowid)
