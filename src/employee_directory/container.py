from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import MAX_PAGE_SIZE
from .database.connection import DBConfig, DatabaseConnection
from .employees.access import AccessGuard
from .employees.cache import EmployeeCache
from .employees.filters import FilterCompiler
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeDirectory
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    users_repo: UserRepository
    employee_cache: EmployeeCache

    directory: EmployeeDirectory
    auth_service: AuthService


def wire(
    *,
    employees_repo: EmployeeRepository,
    users_repo: UserRepository,
    conn: Optional[DatabaseConnection] = None,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Container:
    cache = EmployeeCache()
    directory = EmployeeDirectory(
        employees_repo,
        cache=cache,
        guard=AccessGuard(),
        compiler=FilterCompiler(),
        max_page_size=max_page_size,
    )
    auth_service = AuthService(users_repo, employees_repo, cache=cache)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        users_repo=users_repo,
        employee_cache=cache,
        directory=directory,
        auth_service=auth_service,
    )


def build_container(*, db_config: dict, max_page_size: int = MAX_PAGE_SIZE) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        employees_repo=MySQLEmployeeRepository(conn),
        users_repo=MySQLUserRepository(conn),
        conn=conn,
        max_page_size=max_page_size,
    )
