from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of a user, used for authorization."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class Operation(str, Enum):
    """Operations exposed by the employee directory."""

    VIEW = "VIEW"
    LIST = "LIST"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MARK_ATTENDANCE = "MARK_ATTENDANCE"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
