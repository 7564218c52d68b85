"""Example: use the service layer directly (no Flask).

Controllers are only a thin layer; the rules live in EmployeeDirectory.
"""

import importlib

from config import get_settings_module

from employee_directory.container import build_container
from employee_directory.employees.filters import EmployeeFilter


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    admin = container.auth_service.authenticate("admin", "admin123")
    page = container.directory.list(EmployeeFilter(min_age=18), admin, page=0, size=5, sort_by="name")
    for employee in page.content:
        print(employee.employee_id, employee.name, employee.class_name)
    print(page.page_info())


if __name__ == "__main__":
    main()
