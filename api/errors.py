from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from services.errors import AuthError

logger = logging.getLogger(__name__)

HTTP_KINDS = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def _rollback():
    storage = current_app.extensions.get("storage")
    if storage is not None:
        storage.rollback()


def register_error_handlers(app):
    # Auth-core failures carry their own kind and status
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        return error_response(err.kind, err.message, err.status_code)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors that escaped the stores (FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        _rollback()
        lower_msg = str(getattr(err, "orig", err)).lower()
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(err: SQLAlchemyError):
        _rollback()
        logger.exception("Database error", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(HTTP_KINDS.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
