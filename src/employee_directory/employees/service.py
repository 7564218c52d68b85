from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_attendance_date, validate_employee_input
from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import Operation, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.model import Principal
from .access import AccessGuard
from .cache import EmployeeCache
from .filters import EmployeeFilter, FilterCompiler, owned_by
from .model import Employee, EmployeeInput
from .repository import EmployeeRepository, SortSpec

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageInfo:
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    has_next: bool
    has_previous: bool


@dataclass(frozen=True)
class Page:
    content: Sequence[Employee]
    page_number: int
    page_size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page_number + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page_number > 0

    def page_info(self) -> PageInfo:
        return PageInfo(
            page_number=self.page_number,
            page_size=self.page_size,
            total_elements=self.total_elements,
            total_pages=self.total_pages,
            has_next=self.has_next,
            has_previous=self.has_previous,
        )


class EmployeeDirectory:
    """Use cases over the Employee aggregate.

    Single-record reads go through the cache; lists always hit the repository.
    Writes commit to the repository first and only then evict, inside the
    per-key critical section, so a failed write never evicts a valid entry.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        *,
        cache: Optional[EmployeeCache] = None,
        guard: Optional[AccessGuard] = None,
        compiler: Optional[FilterCompiler] = None,
        clock: Callable[[], datetime] = now_local,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._employees = employees
        self._cache = cache if cache is not None else EmployeeCache()
        self._guard = guard if guard is not None else AccessGuard()
        self._compiler = compiler if compiler is not None else FilterCompiler()
        self._clock = clock
        self._max_page_size = int(max_page_size)

    def get_by_id(self, employee_id: int, principal: Principal) -> Employee:
        LOGGER.info("Fetching employee with id: %s", employee_id)
        employee = self._load(employee_id)
        self._guard.check(principal, employee, Operation.VIEW)
        return employee

    def list(
        self,
        flt: Optional[EmployeeFilter],
        principal: Principal,
        *,
        page: int = DEFAULT_PAGE,
        size: int = DEFAULT_PAGE_SIZE,
        sort_by: Optional[str] = None,
        sort_dir: Optional[str] = None,
    ) -> Page:
        LOGGER.info("Fetching employees with filter: %s, page: %s, size: %s", flt, page, size)
        self._guard.check(principal, None, Operation.LIST)

        if page < 0:
            raise ValidationError("page must not be negative", field="page")
        if size <= 0:
            raise ValidationError("size must be greater than 0", field="size")
        if size > self._max_page_size:
            raise ValidationError(f"size must not exceed {self._max_page_size}", field="size")
        sort = SortSpec.parse(sort_by, sort_dir)

        predicate = self._compiler.compile(flt)
        if principal.role == Role.EMPLOYEE:
            predicate = predicate.and_(owned_by(principal.username))

        content, total = self._employees.find_page(predicate, page=page, size=size, sort=sort)
        return Page(content=list(content), page_number=page, page_size=size, total_elements=int(total))

    def create(self, data: EmployeeInput, principal: Principal) -> Employee:
        LOGGER.info("Adding new employee: %s", data.name)
        self._guard.check(principal, None, Operation.CREATE)
        data = validate_employee_input(data)

        if data.email and self._employees.get_by_email(data.email):
            raise ConflictError(f"Email already registered: {data.email}", field="email")

        employee_id = self._employees.create(data, now=self._clock())
        self._cache.evict_all()
        return self._reload(employee_id)

    def update(self, employee_id: int, data: EmployeeInput, principal: Principal) -> Employee:
        LOGGER.info("Updating employee with id: %s", employee_id)
        current = self._load(employee_id)
        self._guard.check(principal, current, Operation.UPDATE)
        data = validate_employee_input(data)

        with self._cache.key_lock(employee_id):
            if data.email:
                other = self._employees.get_by_email(data.email)
                if other and other.employee_id != employee_id:
                    raise ConflictError(f"Email already registered: {data.email}", field="email")

            if not self._employees.update(employee_id, data, now=self._clock()):
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            self._cache.evict(employee_id)
        return self._reload(employee_id)

    def delete(self, employee_id: int, principal: Principal) -> bool:
        LOGGER.info("Deleting employee with id: %s", employee_id)
        self._guard.check(principal, None, Operation.DELETE)

        with self._cache.key_lock(employee_id):
            if not self._employees.exists_by_id(employee_id):
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            if not self._employees.delete_by_id(employee_id):
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            self._cache.evict(employee_id)
        return True

    def mark_attendance(self, employee_id: int, work_date: str, present: bool, principal: Principal) -> Employee:
        LOGGER.info("Marking attendance for employee: %s, date: %s, present: %s", employee_id, work_date, present)
        current = self._load(employee_id)
        self._guard.check(principal, current, Operation.MARK_ATTENDANCE)

        work_date = parse_attendance_date(work_date)
        if not isinstance(present, bool):
            raise ValidationError("present must be true or false", field="present")

        with self._cache.key_lock(employee_id):
            if not self._employees.upsert_attendance(employee_id, work_date=work_date, present=present, now=self._clock()):
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            self._cache.evict(employee_id)
        return self._reload(employee_id)

    def _load(self, employee_id: int) -> Employee:
        cached = self._cache.get(employee_id)
        if cached is not None:
            return cached

        # Populate under the key lock so a concurrent write cannot be overtaken
        # by a stale read landing in the cache after its eviction.
        with self._cache.key_lock(employee_id):
            cached = self._cache.get(employee_id)
            if cached is not None:
                return cached
            employee = self._employees.get_by_id(employee_id)
            if employee is None:
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            self._cache.put(employee_id, employee)
            return employee

    def _reload(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee not found with id: {employee_id}")
        return employee
