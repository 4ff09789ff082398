from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, jsonify, session
from werkzeug.exceptions import HTTPException

from ..core.enums import UserRole
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    RemoteUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    ConfigurationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    RemoteUnavailableError: 503,
}


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("يرجى تسجيل الدخول للمتابعة", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("يرجى تسجيل الدخول للمتابعة", 401)
        if session.get("role") != UserRole.ADMIN.value:
            return error_response("ليس لديك صلاحية لتنفيذ هذا الإجراء", 403)
        return view(*args, **kwargs)

    return wrapper


def current_role() -> UserRole:
    return UserRole(session.get("role"))


def register_error_handlers(app) -> None:
    for exc_type, status in ERROR_STATUS.items():
        app.register_error_handler(exc_type, lambda e, status=status: error_response(str(e), status))

    @app.errorhandler(Exception)
    def unexpected(e):
        if isinstance(e, HTTPException):
            return error_response(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error")
        if bool(current_app.config.get("DEBUG", False)):
            return error_response(f"حدث خطأ في النظام: {e}", 500)
        return error_response("حدث خطأ في النظام", 500)
