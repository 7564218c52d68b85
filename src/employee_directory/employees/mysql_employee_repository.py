from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import date_key, db_cursor, fetchall, fetchone, placeholders
from .filters import EmployeePredicate
from .model import Employee, EmployeeInput
from .repository import EmployeeRepository, SortSpec

_SELECT_EMPLOYEES = """
    SELECT e.id, e.name, e.age, e.class_name, e.email, e.phone, e.created_at, e.updated_at,
           u.username AS owner_username
    FROM employees e
    LEFT JOIN users u ON u.employee_id = e.id
"""


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_EMPLOYEES + " WHERE e.id=%s", (int(employee_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def get_by_email(self, email: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_EMPLOYEES + " WHERE e.email=%s", (email,))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def exists_by_id(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM employees WHERE id=%s", (int(employee_id),))
            return fetchone(cur) is not None

    def find_page(
        self,
        predicate: EmployeePredicate,
        *,
        page: int,
        size: int,
        sort: SortSpec,
    ) -> tuple[Sequence[Employee], int]:
        where, params = predicate.where_clause()
        direction = "DESC" if sort.descending else "ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM employees e WHERE {where}", params)
            total = int(fetchone(cur)["total"])
            if total == 0:
                return [], 0

            cur.execute(
                _SELECT_EMPLOYEES
                + f" WHERE {where} ORDER BY {sort.column} {direction}, e.id {direction} LIMIT %s OFFSET %s",
                params + (int(size), int(page) * int(size)),
            )
            rows = fetchall(cur)
            return self._hydrate(cur, rows), total

    def create(self, data: EmployeeInput, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(name, age, class_name, email, phone, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (data.name, int(data.age), data.class_name, data.email, data.phone, now, now),
            )
            employee_id = int(cur.lastrowid)
            self._insert_subjects(cur, employee_id, data.subjects)
            return employee_id

    def update(self, employee_id: int, data: EmployeeInput, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM employees WHERE id=%s FOR UPDATE", (int(employee_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE employees
                SET name=%s, age=%s, class_name=%s, email=%s, phone=%s, updated_at=%s
                WHERE id=%s
                """,
                (data.name, int(data.age), data.class_name, data.email, data.phone, now, int(employee_id)),
            )
            cur.execute("DELETE FROM employee_subjects WHERE employee_id=%s", (int(employee_id),))
            self._insert_subjects(cur, int(employee_id), data.subjects)
            return True

    def delete_by_id(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE id=%s", (int(employee_id),))
            return cur.rowcount > 0

    def upsert_attendance(self, employee_id: int, *, work_date: str, present: bool, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock serialises writers on the same aggregate; the ledger
            # itself is merged per date key, never replaced wholesale.
            cur.execute("SELECT id FROM employees WHERE id=%s FOR UPDATE", (int(employee_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                INSERT INTO employee_attendance(employee_id, attendance_date, present)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE present=VALUES(present)
                """,
                (int(employee_id), work_date, 1 if present else 0),
            )
            cur.execute("UPDATE employees SET updated_at=%s WHERE id=%s", (now, int(employee_id)))
            return True

    @staticmethod
    def _insert_subjects(cur, employee_id: int, subjects: Sequence[str]) -> None:
        if not subjects:
            return
        cur.executemany(
            "INSERT INTO employee_subjects(employee_id, position, subject) VALUES(%s,%s,%s)",
            [(employee_id, i, s) for i, s in enumerate(subjects)],
        )

    @staticmethod
    def _hydrate(cur, rows: list[dict[str, Any]]) -> list[Employee]:
        if not rows:
            return []
        ids = tuple(int(r["id"]) for r in rows)
        marks = placeholders(len(ids))

        cur.execute(
            f"SELECT employee_id, subject FROM employee_subjects WHERE employee_id IN ({marks}) ORDER BY employee_id, position",
            ids,
        )
        subjects: dict[int, list[str]] = defaultdict(list)
        for r in fetchall(cur):
            subjects[int(r["employee_id"])].append(r["subject"])

        cur.execute(
            f"SELECT employee_id, attendance_date, present FROM employee_attendance WHERE employee_id IN ({marks})",
            ids,
        )
        attendance: dict[int, dict[str, bool]] = defaultdict(dict)
        for r in fetchall(cur):
            attendance[int(r["employee_id"])][date_key(r["attendance_date"])] = bool(r["present"])

        return [
            Employee(
                employee_id=int(r["id"]),
                name=r["name"],
                age=int(r["age"]),
                class_name=r["class_name"],
                subjects=tuple(subjects.get(int(r["id"]), ())),
                email=r.get("email"),
                phone=r.get("phone"),
                created_at=r["created_at"],
                updated_at=r["updated_at"],
                attendance=dict(attendance.get(int(r["id"]), {})),
                owner_username=r.get("owner_username"),
            )
            for r in rows
        ]
