from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError, InternalError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Run one transaction: commit on success, roll back on any error.

    Driver errors are translated to domain errors: duplicate keys become
    ConflictError, everything else from the driver becomes InternalError.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise InternalError("Could not connect to the database") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise ConflictError("Duplicate entry", field=_duplicate_field(exc)) from exc
        raise InternalError("Data integrity violation") from exc
    except mysql.connector.Error as exc:
        conn.rollback()
        raise InternalError("Database operation failed") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _duplicate_field(exc: mysql.connector.Error) -> Optional[str]:
    # e.g. "Duplicate entry 'a@b.com' for key 'employees.uq_employees_email'"
    msg = str(getattr(exc, "msg", "") or exc).lower()
    key_part = msg.rsplit("for key", 1)[-1]
    for key, field in (("email", "email"), ("username", "username"), ("employee", "employeeId")):
        if key in key_part:
            return field
    return None


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    return ",".join(["%s"] * count)


def date_key(value: Any) -> str:
    """Normalize a DATE column value to a YYYY-MM-DD string."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]
