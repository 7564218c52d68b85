"""Compile sparse employee filters into composable predicates.

A compiled ``EmployeePredicate`` is an AND of independent criteria. Each
criterion carries both a parameterised SQL fragment (pushed down to the
``employees e`` query so paging and sorting happen in the database) and an
equivalent in-process test, used by in-memory repositories.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..common.validators import parse_int
from ..core.exceptions import ValidationError
from .model import Employee


@dataclass(frozen=True)
class EmployeeFilter:
    """Typed filter: every field is optional, ``None`` means absent."""

    name: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    class_name: Optional[str] = None
    subject: Optional[str] = None

    def __post_init__(self):
        for attr, key in (("min_age", "minAge"), ("max_age", "maxAge")):
            value = getattr(self, attr)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValidationError(f"{key} must be an integer", field=key)

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "EmployeeFilter":
        """Build a filter from loosely-typed input (query string, JSON).

        Accepts camelCase keys (``minAge``, ``className``) as sent by clients.
        Blank values are treated as absent.
        """
        if not raw:
            return cls()

        def text(key: str) -> Optional[str]:
            value = raw.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        def number(key: str) -> Optional[int]:
            value = text(key)
            return None if value is None else parse_int(value, key)

        return cls(
            name=text("name"),
            min_age=number("minAge"),
            max_age=number("maxAge"),
            class_name=text("className"),
            subject=text("subject"),
        )

    def is_empty(self) -> bool:
        return all(getattr(self, attr) is None for attr, _ in _RULES)


@dataclass(frozen=True)
class Criterion:
    sql: str
    params: tuple
    test: Callable[[Employee], bool]


@dataclass(frozen=True)
class EmployeePredicate:
    criteria: tuple[Criterion, ...] = ()

    @property
    def is_universal(self) -> bool:
        return not self.criteria

    def matches(self, employee: Employee) -> bool:
        return all(c.test(employee) for c in self.criteria)

    def and_(self, *others: Criterion) -> "EmployeePredicate":
        return EmployeePredicate(self.criteria + tuple(others))

    def where_clause(self) -> tuple[str, tuple]:
        if not self.criteria:
            return "1=1", ()
        sql = " AND ".join(f"({c.sql})" for c in self.criteria)
        params: tuple = ()
        for c in self.criteria:
            params += c.params
        return sql, params


def name_contains(value: str) -> Criterion:
    needle = value.lower()
    return Criterion(
        sql="LOWER(e.name) LIKE %s",
        params=(f"%{needle}%",),
        test=lambda e: needle in e.name.lower(),
    )


def age_at_least(value: int) -> Criterion:
    return Criterion(sql="e.age >= %s", params=(value,), test=lambda e: e.age >= value)


def age_at_most(value: int) -> Criterion:
    return Criterion(sql="e.age <= %s", params=(value,), test=lambda e: e.age <= value)


def class_name_is(value: str) -> Criterion:
    return Criterion(sql="e.class_name = %s", params=(value,), test=lambda e: e.class_name == value)


def has_subject(value: str) -> Criterion:
    return Criterion(
        sql="EXISTS (SELECT 1 FROM employee_subjects es WHERE es.employee_id = e.id AND es.subject = %s)",
        params=(value,),
        test=lambda e: value in e.subjects,
    )


def owned_by(username: str) -> Criterion:
    """Restrict to the employee linked to ``username``."""
    return Criterion(
        sql="EXISTS (SELECT 1 FROM users ou WHERE ou.employee_id = e.id AND ou.username = %s)",
        params=(username,),
        test=lambda e: e.owner_username == username,
    )


_RULES: tuple[tuple[str, Callable[[Any], Criterion]], ...] = (
    ("name", name_contains),
    ("min_age", age_at_least),
    ("max_age", age_at_most),
    ("class_name", class_name_is),
    ("subject", has_subject),
)


class FilterCompiler:
    """AND together one criterion per present filter field."""

    def compile(self, flt: Optional[EmployeeFilter]) -> EmployeePredicate:
        if flt is None:
            return EmployeePredicate()
        criteria = []
        for attr, build in _RULES:
            value = getattr(flt, attr)
            if value is not None:
                criteria.append(build(value))
        return EmployeePredicate(tuple(criteria))
