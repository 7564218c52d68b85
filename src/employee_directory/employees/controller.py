from __future__ import annotations

from typing import Any

from flask import Flask, current_app, jsonify, request

from ..common.validators import parse_int
from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from ..core.exceptions import ValidationError
from ..container import Container
from ..web import current_principal, json_body, login_required
from .filters import EmployeeFilter
from .model import Employee, EmployeeInput
from .service import Page


def employee_to_dict(employee: Employee) -> dict[str, Any]:
    return {
        "id": employee.employee_id,
        "name": employee.name,
        "age": employee.age,
        "className": employee.class_name,
        "subjects": list(employee.subjects),
        "email": employee.email,
        "phone": employee.phone,
        "createdAt": employee.created_at.isoformat() if employee.created_at else None,
        "updatedAt": employee.updated_at.isoformat() if employee.updated_at else None,
        "attendance": [{"date": r.date, "present": r.present} for r in employee.attendance_records()],
    }


def page_to_dict(page: Page) -> dict[str, Any]:
    info = page.page_info()
    return {
        "content": [employee_to_dict(e) for e in page.content],
        "pageInfo": {
            "pageNumber": info.page_number,
            "pageSize": info.page_size,
            "totalElements": info.total_elements,
            "totalPages": info.total_pages,
            "hasNext": info.has_next,
            "hasPrevious": info.has_previous,
        },
    }


def employee_input_from_json(data: dict[str, Any]) -> EmployeeInput:
    subjects = data.get("subjects")
    if subjects is not None and not isinstance(subjects, list):
        raise ValidationError("subjects must be a list", field="subjects")
    age = data.get("age")
    return EmployeeInput(
        name=data.get("name") or "",
        age=parse_int(age, "age") if age is not None else None,
        class_name=data.get("className") or "",
        subjects=subjects or [],
        email=data.get("email"),
        phone=data.get("phone"),
    )


def register(app: Flask, container: Container) -> None:
    directory = container.directory

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @login_required
    def list_employees():
        args = request.args
        page = directory.list(
            EmployeeFilter.from_mapping(args),
            current_principal(),
            page=parse_int(args.get("page", DEFAULT_PAGE), "page"),
            size=parse_int(args.get("size", current_app.config.get("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)), "size"),
            sort_by=args.get("sortBy"),
            sort_dir=args.get("sortDir"),
        )
        return jsonify(page_to_dict(page))

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="get_employee")
    @login_required
    def get_employee(employee_id: int):
        employee = directory.get_by_id(employee_id, current_principal())
        return jsonify(employee_to_dict(employee))

    @app.route("/api/employees", methods=["POST"], endpoint="add_employee")
    @login_required
    def add_employee():
        employee = directory.create(employee_input_from_json(json_body()), current_principal())
        return jsonify(employee_to_dict(employee)), 201

    @app.route("/api/employees/<int:employee_id>", methods=["PUT"], endpoint="update_employee")
    @login_required
    def update_employee(employee_id: int):
        employee = directory.update(employee_id, employee_input_from_json(json_body()), current_principal())
        return jsonify(employee_to_dict(employee))

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="delete_employee")
    @login_required
    def delete_employee(employee_id: int):
        return jsonify({"deleted": directory.delete(employee_id, current_principal())})

    @app.route("/api/employees/<int:employee_id>/attendance", methods=["POST"], endpoint="mark_attendance")
    @login_required
    def mark_attendance(employee_id: int):
        data = json_body()
        employee = directory.mark_attendance(
            employee_id,
            data.get("date") or "",
            data.get("present"),
            current_principal(),
        )
        return jsonify(employee_to_dict(employee))
