from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, session

from ..common.validators import parse_int
from ..core.enums import Role
from ..core.exceptions import AccessDeniedError, ValidationError
from ..container import Container
from ..web import current_principal, json_body, login_required
from .model import Principal, User


def user_to_dict(user: User) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": user.user_id,
        "username": user.username,
        "role": user.role.value,
    }
    if user.employee_id is not None:
        payload["employeeId"] = user.employee_id
    return payload


def _start_session(principal: Principal) -> None:
    session.clear()
    session["username"] = principal.username
    session["role"] = principal.role.value


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        principal = auth.authenticate(str(data.get("username") or ""), str(data.get("password") or ""))
        _start_session(principal)
        return jsonify({"user": user_to_dict(auth.get_user(principal.username))})

    @app.route("/api/auth/register", methods=["POST"], endpoint="register")
    def register_user():
        data = json_body()
        try:
            role = Role(str(data.get("role") or Role.EMPLOYEE.value).upper())
        except ValueError:
            raise ValidationError("role must be ADMIN or EMPLOYEE", field="role")

        employee_id = data.get("employeeId")
        # Only an admin session may create admins or link users to employees.
        if (role == Role.ADMIN or employee_id is not None) and session.get("role") != Role.ADMIN.value:
            raise AccessDeniedError("Access denied: only an admin can register admins or link employees")

        user = auth.register(
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            role=role,
            employee_id=parse_int(employee_id, "employeeId") if employee_id is not None else None,
        )
        if "username" not in session:
            _start_session(Principal(username=user.username, role=user.role))
        return jsonify({"user": user_to_dict(user)}), 201

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify(user_to_dict(auth.get_user(current_principal().username)))
