import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.exceptions import AppError
from app.schemas.error import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
        502: "BAD_GATEWAY",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict = None,
    headers: dict = None,
) -> JSONResponse:
    request_id = _request_id(request)
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("[%s] %s: %s", _request_id(request), exc.code, exc.message)
    else:
        logger.info("[%s] %s: %s", _request_id(request), exc.code, exc.message)
    return _error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning("[%s] HTTP %s: %s", _request_id(request), exc.status_code, exc.detail)
    return _error_response(
        request,
        exc.status_code,
        _get_error_code(exc.status_code),
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning("[%s] Validation error: %s", _request_id(request), errors)
    return _error_response(
        request,
        422,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"validation_errors": errors},
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.error("[%s] Unhandled exception: %s", _request_id(request), exc, exc_info=exc)
    return _error_response(
        request,
        500,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        {"error_type": type(exc).__name__},
    )
