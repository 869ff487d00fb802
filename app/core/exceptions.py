"""
Application Errors

Domain error taxonomy raised by the service layer. Each error maps to one
HTTP status and a stable error code; the handlers in app.main render them
as structured JSON.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Missing or malformed required fields."""

    status_code = 400
    code = "VALIDATION_ERROR"


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(AppError):
    """Authenticated, but not the owner of the resource."""

    status_code = 403
    code = "FORBIDDEN"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"


class UpstreamError(AppError):
    """
    The payment provider rejected or failed a request.

    The provider's status code and body are kept for diagnostics. The
    response status mirrors the provider's status when it is a client or
    server error, and falls back to 502 for transport failures.
    """

    code = "UPSTREAM_ERROR"

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={"upstream_status": upstream_status, "upstream_body": upstream_body},
        )
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        if upstream_status is not None and upstream_status >= 400:
            self.status_code = upstream_status
        else:
            self.status_code = 502


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"
