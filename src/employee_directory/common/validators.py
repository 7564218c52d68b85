from __future__ import annotations

import re
from typing import Any, Optional, Sequence

from ..core import constants
from ..core.exceptions import ValidationError
from ..employees.model import EmployeeInput
from .datetime_utils import parse_iso_date

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9]{10,15}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", field=field_name)
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must not exceed {max_len} characters", field=field_name)
    return value


def parse_int(value: Any, field_name: str) -> int:
    """Parse loosely-typed input (str/int) into an int."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_employee_input(data: EmployeeInput) -> EmployeeInput:
    """Check field constraints and return a normalised copy."""

    name = require_non_empty(data.name, "name")
    if len(name) < constants.NAME_MIN_LENGTH or len(name) > constants.NAME_MAX_LENGTH:
        raise ValidationError(
            f"name must be between {constants.NAME_MIN_LENGTH} and {constants.NAME_MAX_LENGTH} characters",
            field="name",
        )

    if data.age is None:
        raise ValidationError("age is required", field="age")
    age = parse_int(data.age, "age")
    if age < constants.MIN_AGE or age > constants.MAX_AGE:
        raise ValidationError(f"age must be between {constants.MIN_AGE} and {constants.MAX_AGE}", field="age")

    class_name = require_max_length(require_non_empty(data.class_name, "className"), "className", constants.CLASS_NAME_MAX_LENGTH)

    subjects = _validate_subjects(data.subjects)

    email = _optional_text(data.email)
    if email is not None:
        require_max_length(email, "email", constants.EMAIL_MAX_LENGTH)
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email format", field="email")

    phone = _optional_text(data.phone)
    if phone is not None and not PHONE_RE.match(phone):
        raise ValidationError("Phone number must be 10-15 digits", field="phone")

    return EmployeeInput(
        name=name,
        age=age,
        class_name=class_name,
        subjects=subjects,
        email=email,
        phone=phone,
    )


def _validate_subjects(subjects: Optional[Sequence[str]]) -> tuple[str, ...]:
    if not subjects or isinstance(subjects, str):
        raise ValidationError("At least one subject is required", field="subjects")
    if len(subjects) > constants.MAX_SUBJECTS:
        raise ValidationError(f"Number of subjects must be between 1 and {constants.MAX_SUBJECTS}", field="subjects")
    out = []
    for s in subjects:
        if s is None or not str(s).strip():
            raise ValidationError("Subjects must not be empty", field="subjects")
        out.append(str(s).strip())
    return tuple(out)


def parse_attendance_date(value: str) -> str:
    """Validate an attendance date key and return it in canonical YYYY-MM-DD form."""
    if not value or not str(value).strip():
        raise ValidationError("date is required", field="date")
    try:
        return parse_iso_date(str(value).strip()).isoformat()
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD", field="date")
