from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
import logging

from services.errors import ServiceError

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Expected failures (validation, auth, conflict, ...) are not logged as exceptional
    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        if err.status >= 500:
            logger.error("service failure: %s", err, exc_info=err.__cause__ or err)
        else:
            logger.info("%s %s: %s", err.status, err.code, err.message)
        return error_response(err.code, err.message, err.status, details=err.details)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("BAD_REQUEST", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        # In dev, include exception details to speed up debugging
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
