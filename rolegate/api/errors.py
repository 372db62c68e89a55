"""Terminal error stage: maps typed errors to HTTP status and the uniform envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from rolegate.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    ValidationFailedError,
)
from rolegate.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[AppError], int] = {
    ValidationFailedError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    RateLimitedError: 429,
    InternalError: 500,
}


def status_for(error: AppError) -> int:
    """Most specific mapped ancestor wins; anything unmapped is a 500."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def log_for_status(status: int, message: str, *args: object) -> None:
    if status >= 500:
        logger.error(message, *args)
    elif status >= 400:
        logger.warning(message, *args)
    else:
        logger.info(message, *args)


def error_response(
    status: int,
    message: str,
    details: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(code=status, message=message, details=details).body()
    return JSONResponse(status_code=status, content=body, headers=headers)


def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status = status_for(exc)
    log_for_status(
        status,
        "Request error: %s %s -> %s %s: %s",
        request.method,
        request.url.path,
        status,
        type(exc).__name__,
        exc.details or exc.message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    # Internal details stay in the log.
    details = exc.details if status < 500 else None
    return error_response(status, exc.message, details, headers)


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    details = "; ".join(problems)
    log_for_status(400, "Validation failed: %s %s: %s", request.method, request.url.path, details)
    return error_response(400, ValidationFailedError.default_message, details)


def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    log_for_status(exc.status_code, "HTTP error: %s %s -> %s", request.method, request.url.path, exc.status_code)
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Called synchronously by slowapi's middleware as well as by FastAPI.
    log_for_status(429, "Rate limit exceeded: %s %s (%s)", request.method, request.url.path, exc.detail)
    return error_response(429, RateLimitedError.default_message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
