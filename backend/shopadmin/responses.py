# Overview: Structured response bodies and the error handlers that produce them.

"""
Every response body has the same shape:

    {"success": true,  "message": "...", "data": ...}
    {"success": false, "message": "...", "errors": ["...", ...]}

Service exceptions map to status codes here, once, instead of in each route.
Storage-layer errors never reach the client.
"""
from __future__ import annotations

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .services.auth_service import AuthenticationError
from .services.authorization_service import PermissionDeniedError
from .validation import ConflictError, NotFoundError, PolicyViolationError, ValidationError


class ServiceUnavailableError(Exception):
    """503-level: a backing service (the database) cannot be reached."""
    pass


def success(data=None, message: str = "Success", status: int = 200):
    return jsonify({"success": True, "message": message, "data": data}), status


def error_response(message: str, status: int, errors: list[str] | None = None):
    return jsonify({"success": False, "message": message, "errors": list(errors or [])}), status


def register_error_handlers(app) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return error_response(str(e), 400, e.errors or [str(e)])

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(e: AuthenticationError):
        return error_response(str(e), 401)

    @app.errorhandler(PermissionDeniedError)
    def _denied(e: PermissionDeniedError):
        return error_response("Permission denied", 403, [str(e)])

    @app.errorhandler(PolicyViolationError)
    def _policy(e: PolicyViolationError):
        return error_response(str(e), 403)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return error_response(str(e), 404)

    @app.errorhandler(ConflictError)
    def _conflict(e: ConflictError):
        return error_response(str(e), 409)

    @app.errorhandler(ServiceUnavailableError)
    def _unavailable(e: ServiceUnavailableError):
        return error_response(str(e) or "Service unavailable", 503)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(SQLAlchemyError)
    def _storage(e: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("Unhandled database error")
        return error_response("Internal server error", 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        current_app.logger.exception("Unhandled error")
        return error_response("Internal server error", 500)
