"""Application error hierarchy.

Workflows raise these; the API error handler turns them into
``{"status": ..., "message": ...}`` JSON responses.
"""

from typing import Optional


class AppError(Exception):
    """An error with an HTTP status code attached."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        """`fail` for client errors, `error` for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict:
        return {"status": self.status, "message": self.message}


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PaymentGatewayError(AppError):
    """The payment provider rejected or failed a call."""

    status_code = 502


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""
