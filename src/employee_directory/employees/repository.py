from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_SORT_FIELD
from ..core.enums import SortDirection
from ..core.exceptions import ValidationError
from .filters import EmployeePredicate
from .model import Employee, EmployeeInput

# API sort field -> (SQL column, Employee attribute)
SORTABLE_FIELDS: dict[str, tuple[str, str]] = {
    "id": ("e.id", "employee_id"),
    "name": ("e.name", "name"),
    "age": ("e.age", "age"),
    "className": ("e.class_name", "class_name"),
    "email": ("e.email", "email"),
    "createdAt": ("e.created_at", "created_at"),
    "updatedAt": ("e.updated_at", "updated_at"),
}


@dataclass(frozen=True)
class SortSpec:
    field: str = DEFAULT_SORT_FIELD
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, sort_by: Optional[str], sort_dir: Optional[str]) -> "SortSpec":
        field = (sort_by or "").strip() or DEFAULT_SORT_FIELD
        if field not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by '{field}'", field="sortBy")
        # Anything other than DESC falls back to ascending.
        direction = SortDirection.DESC if (sort_dir or "").strip().upper() == "DESC" else SortDirection.ASC
        return cls(field=field, direction=direction)

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC

    @property
    def column(self) -> str:
        return SORTABLE_FIELDS[self.field][0]

    def key(self, employee: Employee) -> tuple[bool, Any]:
        value = getattr(employee, SORTABLE_FIELDS[self.field][1])
        return (value is None, value if value is not None else 0)


class EmployeeRepository(Protocol):
    """Persistence interface for the Employee aggregate.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    Implementations must enforce email uniqueness (raise ConflictError) and make
    every write atomic.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def exists_by_id(self, employee_id: int) -> bool:
        raise NotImplementedError

    def find_page(
        self,
        predicate: EmployeePredicate,
        *,
        page: int,
        size: int,
        sort: SortSpec,
    ) -> tuple[Sequence[Employee], int]:
        """Return (rows of the requested page, total matching rows)."""

        raise NotImplementedError

    def create(self, data: EmployeeInput, *, now: datetime) -> int:
        raise NotImplementedError

    def update(self, employee_id: int, data: EmployeeInput, *, now: datetime) -> bool:
        """Full replace of the mutable fields. Returns False if the id is unknown."""

        raise NotImplementedError

    def delete_by_id(self, employee_id: int) -> bool:
        raise NotImplementedError

    def upsert_attendance(self, employee_id: int, *, work_date: str, present: bool, now: datetime) -> bool:
        """Merge one (date -> present) entry into the ledger. Returns False if the id is unknown."""

        raise NotImplementedError
