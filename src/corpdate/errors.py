"""Domain errors raised by the service layer.

Each error carries the HTTP status and a stable machine-readable code; the
global handler in ``corpdate.middleware.error_handler`` renders them as JSON.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class UnauthorizedError(AppError):
    status_code = 401
    code = "unauthorized"


class InvalidInputError(AppError):
    status_code = 400
    code = "invalid_input"


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"


class InvalidSignatureError(AppError):
    """Payment or webhook signature mismatch. Never downgraded."""

    status_code = 400
    code = "invalid_signature"


class UpstreamError(AppError):
    """A vendor (payment gateway, OTP provider, ride estimator) failed."""

    status_code = 502
    code = "upstream_failure"
