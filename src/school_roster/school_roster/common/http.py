from __future__ import annotations

import logging
from dataclasses import dataclass, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    InvalidCredentialError,
    InvalidReferenceError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    InvalidReferenceError: 400,
    ConflictError: 409,
    InvalidCredentialError: 401,
    ForbiddenError: 403,
    UnexpectedError: 500,
}


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: Role


def current_principal() -> Optional[Principal]:
    """Principal put in the session by the login layer, if any."""
    user_id = session.get("user_id")
    role = session.get("role")
    if user_id is None or role is None:
        return None
    try:
        return Principal(user_id=int(user_id), role=Role(role))
    except ValueError:
        return None


def roles_required(*roles: Role):
    """Reject the request unless the session principal holds one of ``roles``.

    With no roles given, any signed-in principal passes.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if principal is None:
                return jsonify({"success": False, "error": "unauthenticated", "message": "Sign in first"}), 401
            if roles and principal.role not in roles:
                return error_response(ForbiddenError("You do not have access to this action"))
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(error: DomainError):
    status = 400
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            status = STATUS_BY_ERROR[cls]
            break
    return jsonify({"success": False, "error": error.kind, "message": str(error)}), status


def ok(**payload: Any):
    return jsonify({"success": True, **payload})


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if isinstance(e, UnexpectedError):
            logger.error("store failure on %s %s: %s", request.method, request.path, e)
        return error_response(e)


def as_json(value: Any) -> Any:
    """Render domain dataclasses, enums and dates as JSON-ready values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: as_json(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [as_json(v) for v in value]
    if isinstance(value, dict):
        return {k: as_json(v) for k, v in value.items()}
    return value
