from __future__ import annotations

import dataclasses
import threading
from datetime import datetime, timedelta
from typing import Optional

import pytest

from employee_directory.core.enums import Role
from employee_directory.core.exceptions import ConflictError, InternalError
from employee_directory.employees.cache import EmployeeCache
from employee_directory.employees.filters import EmployeePredicate
from employee_directory.employees.model import Employee, EmployeeInput
from employee_directory.employees.repository import SortSpec
from employee_directory.employees.service import EmployeeDirectory
from employee_directory.users.model import Principal, User


class InMemoryEmployees:
    """EmployeeRepository fake. A single lock makes every write atomic."""

    def __init__(self):
        self._rows: dict[int, Employee] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self.owners: dict[int, str] = {}
        self.get_calls = 0
        self.fail_writes = False

    def _view(self, row: Optional[Employee]) -> Optional[Employee]:
        if row is None:
            return None
        return dataclasses.replace(row, owner_username=self.owners.get(row.employee_id))

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise InternalError("simulated write failure")

    def _check_email(self, email: Optional[str], employee_id: Optional[int]) -> None:
        if not email:
            return
        for row in self._rows.values():
            if row.email == email and row.employee_id != employee_id:
                raise ConflictError("Duplicate entry", field="email")

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with self._lock:
            self.get_calls += 1
            return self._view(self._rows.get(employee_id))

    def get_by_email(self, email: str) -> Optional[Employee]:
        with self._lock:
            for row in self._rows.values():
                if row.email == email:
                    return self._view(row)
        return None

    def exists_by_id(self, employee_id: int) -> bool:
        with self._lock:
            return employee_id in self._rows

    def find_page(self, predicate: EmployeePredicate, *, page: int, size: int, sort: SortSpec):
        with self._lock:
            views = [self._view(r) for r in self._rows.values()]
        matching = sorted((e for e in views if predicate.matches(e)), key=sort.key, reverse=sort.descending)
        start = page * size
        return matching[start:start + size], len(matching)

    def create(self, data: EmployeeInput, *, now: datetime) -> int:
        with self._lock:
            self._check_writable()
            self._check_email(data.email, None)
            employee_id = self._next_id
            self._next_id += 1
            self._rows[employee_id] = Employee(
                employee_id=employee_id,
                name=data.name,
                age=data.age,
                class_name=data.class_name,
                subjects=tuple(data.subjects),
                email=data.email,
                phone=data.phone,
                created_at=now,
                updated_at=now,
            )
            return employee_id

    def update(self, employee_id: int, data: EmployeeInput, *, now: datetime) -> bool:
        with self._lock:
            self._check_writable()
            row = self._rows.get(employee_id)
            if row is None:
                return False
            self._check_email(data.email, employee_id)
            self._rows[employee_id] = dataclasses.replace(
                row,
                name=data.name,
                age=data.age,
                class_name=data.class_name,
                subjects=tuple(data.subjects),
                email=data.email,
                phone=data.phone,
                updated_at=now,
            )
            return True

    def delete_by_id(self, employee_id: int) -> bool:
        with self._lock:
            self._check_writable()
            self.owners.pop(employee_id, None)
            return self._rows.pop(employee_id, None) is not None

    def upsert_attendance(self, employee_id: int, *, work_date: str, present: bool, now: datetime) -> bool:
        with self._lock:
            self._check_writable()
            row = self._rows.get(employee_id)
            if row is None:
                return False
            ledger = dict(row.attendance)
            ledger[work_date] = present
            self._rows[employee_id] = dataclasses.replace(row, attendance=ledger, updated_at=now)
            return True


class InMemoryUsers:
    def __init__(self, employees: Optional[InMemoryEmployees] = None):
        self._by_username: dict[str, User] = {}
        self._next_id = 1
        self._employees = employees

    def get_by_username(self, username: str) -> Optional[User]:
        return self._by_username.get(username)

    def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        for user in self._by_username.values():
            if user.employee_id == employee_id:
                return user
        return None

    def create_user(self, *, username: str, password_hash: str, role: Role, employee_id: Optional[int] = None) -> int:
        if username in self._by_username:
            raise ConflictError("Duplicate entry", field="username")
        user_id = self._next_id
        self._next_id += 1
        self._by_username[username] = User(
            user_id=user_id,
            username=username,
            password_hash=password_hash,
            role=role,
            employee_id=employee_id,
            created_at=datetime(2024, 1, 1, 8, 0, 0),
        )
        if employee_id is not None and self._employees is not None:
            self._employees.owners[employee_id] = username
        return user_id


class Clock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 60) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2024, 1, 15, 9, 0, 0)


@pytest.fixture()
def clock(fixed_now) -> Clock:
    return Clock(fixed_now)


@pytest.fixture()
def employees_repo() -> InMemoryEmployees:
    return InMemoryEmployees()


@pytest.fixture()
def users_repo(employees_repo) -> InMemoryUsers:
    return InMemoryUsers(employees_repo)


@pytest.fixture()
def cache() -> EmployeeCache:
    return EmployeeCache()


@pytest.fixture()
def directory(employees_repo, cache, clock) -> EmployeeDirectory:
    return EmployeeDirectory(employees_repo, cache=cache, clock=clock)


@pytest.fixture()
def admin() -> Principal:
    return Principal(username="admin", role=Role.ADMIN)


@pytest.fixture()
def make_input():
    def _make(**overrides) -> EmployeeInput:
        values = dict(name="Ann", age=25, class_name="10A", subjects=["Math"], email=None, phone=None)
        values.update(overrides)
        return EmployeeInput(**values)

    return _make
