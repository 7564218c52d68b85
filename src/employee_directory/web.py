"""Flask glue shared by the controllers: principal resolution and error mapping."""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from .core.enums import Role
from .core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from .users.model import Principal

LOGGER = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AccessDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InternalError, 500),
)


def login_required(view):
    """Resolve the session into a Principal (``g.principal``) or fail with 401."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        username = session.get("username")
        role = session.get("role")
        if not username or not role:
            raise AuthenticationError("Authentication required")
        try:
            g.principal = Principal(username=username, role=Role(role))
        except ValueError:
            session.clear()
            raise AuthenticationError("Authentication required")
        return view(*args, **kwargs)

    return wrapper


def current_principal() -> Principal:
    return g.principal


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = 500
        for cls, code in _STATUS_BY_ERROR:
            if isinstance(exc, cls):
                status = code
                break

        if status >= 500:
            LOGGER.error("Request failed: %s", exc, exc_info=exc)
        else:
            LOGGER.info("Request rejected (%s): %s", type(exc).__name__, exc)

        payload: dict[str, Any] = {"error": type(exc).__name__, "message": str(exc)}
        field = getattr(exc, "field", None)
        if field:
            payload["field"] = field
        return jsonify(payload), status

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        # Let Flask render its own HTTP errors (404 routes, 405 methods).
        if isinstance(exc, HTTPException):
            return exc
        LOGGER.exception("Unhandled error")
        return jsonify({"error": "InternalError", "message": "Internal server error occurred"}), 500
