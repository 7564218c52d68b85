from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True)
class AttendanceRecord:
    """One (date, present) entry of an employee's attendance ledger."""

    date: str
    present: bool


@dataclass(frozen=True)
class EmployeeInput:
    """Mutable fields of an employee, as supplied on create/update."""

    name: str
    age: int
    class_name: str
    subjects: Sequence[str]
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class Employee:
    """Domain entity (aggregate root): Employee.

    The attendance ledger is keyed by ISO date string and is only changed
    through ``EmployeeDirectory.mark_attendance``. ``owner_username`` is the
    username of the linked User, if any, and is used for authorization only.
    """

    employee_id: int
    name: str
    age: int
    class_name: str
    subjects: tuple[str, ...]
    email: Optional[str]
    phone: Optional[str]
    created_at: datetime
    updated_at: datetime
    attendance: Mapping[str, bool] = field(default_factory=dict)
    owner_username: Optional[str] = None

    def __post_init__(self):
        # Read-only view over a private copy of the ledger.
        object.__setattr__(self, "attendance", MappingProxyType(dict(self.attendance)))

    def attendance_records(self) -> list[AttendanceRecord]:
        # Ordered by date for stable output; callers must not rely on it.
        return [AttendanceRecord(date=d, present=bool(p)) for d, p in sorted(self.attendance.items())]
