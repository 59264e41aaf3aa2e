"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a machine code, an HTTP-ish status and a short message.
Auth errors are kept vague on purpose: callers must not be able to tell an
unknown token from a replayed one, or an unknown email from a bad password.
"""
from __future__ import annotations


class ServiceError(Exception):
    code = "INTERNAL_ERROR"
    status = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"
    status = 422
    default_message = "Invalid input"


class ConflictError(ServiceError):
    code = "CONFLICT"
    status = 409
    default_message = "Conflict"


class AuthError(ServiceError):
    code = "UNAUTHORIZED"
    status = 401
    default_message = "Unauthorized"


class ForbiddenError(ServiceError):
    code = "FORBIDDEN"
    status = 403
    default_message = "Insufficient role"


class NotFoundError(ServiceError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Resource not found"


class InternalError(ServiceError):
    pass
