"""
Application error taxonomy.

Every error raised by the stores and services derives from AppError so the
API layer can map it to an HTTP status with a single handler:
- ValidationError       -> 400
- UnauthenticatedError  -> 401 (InvalidTokenError, ExpiredTokenError)
- NotFoundError         -> 404
- ConflictError         -> 409
- RateLimitedError      -> 429
- PersistenceError      -> 500
- InternalError         -> 500
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"
    # 5xx errors never expose their message to clients
    expose = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        return self.message if self.expose else self.default_message


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"
    expose = True


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Unauthorized"
    expose = True


class InvalidTokenError(UnauthenticatedError):
    default_message = "Invalid token"


class ExpiredTokenError(UnauthenticatedError):
    default_message = "Token expired"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"
    expose = True


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"
    expose = True


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."
    expose = True


class PersistenceError(AppError):
    status_code = 500


class InternalError(AppError):
    status_code = 500
