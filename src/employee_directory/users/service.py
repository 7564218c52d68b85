from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_max_length, require_min_length, require_non_empty
from ..core.constants import PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from ..employees.cache import EmployeeCache
from ..employees.repository import EmployeeRepository
from .model import Principal, User
from .repository import UserRepository

LOGGER = logging.getLogger(__name__)


class AuthService:
    """Use cases: login, register, who-am-i."""

    def __init__(
        self,
        users: UserRepository,
        employees: EmployeeRepository,
        *,
        cache: Optional[EmployeeCache] = None,
    ):
        self._users = users
        self._employees = employees
        self._cache = cache

    def authenticate(self, username: str, password: str) -> Principal:
        user = self._users.get_by_username((username or "").strip())
        if not user:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        LOGGER.info("User logged in: %s", user.username)
        return Principal(username=user.username, role=user.role)

    def register(
        self,
        *,
        username: str,
        password: str,
        role: Role,
        employee_id: Optional[int] = None,
    ) -> User:
        username = require_max_length(require_non_empty(username, "username"), "username", USERNAME_MAX_LENGTH)
        require_min_length(password, "password", PASSWORD_MIN_LENGTH)

        if self._users.get_by_username(username):
            raise ConflictError("Username already exists", field="username")

        if employee_id is not None:
            employee_id = int(employee_id)
            if not self._employees.exists_by_id(employee_id):
                raise NotFoundError(f"Employee not found with id: {employee_id}")
            if self._users.get_by_employee_id(employee_id):
                raise ConflictError("Employee is already linked to a user", field="employeeId")

        self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            employee_id=employee_id,
        )
        if employee_id is not None and self._cache is not None:
            # The cached aggregate carries the owner username.
            self._cache.evict(employee_id)

        LOGGER.info("Registered user: %s, role: %s", username, role.value)
        return self.get_user(username)

    def get_user(self, username: str) -> User:
        user = self._users.get_by_username(username)
        if not user:
            raise NotFoundError(f"User not found: {username}")
        return user
