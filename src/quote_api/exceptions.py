"""FastAPI exception handlers for converting QuoteEngineError to HTTP responses.

Every error leaves the API as a ServiceError JSON body with a stable
error code. The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: pricing rule violations and other business errors
- 403 Forbidden: non-admin actor
- 404 Not Found: missing package, quote or version
- 409 Conflict: stale version token or a state that forbids the change
- 422 Unprocessable Entity: malformed input
- 500 Internal Server Error: anything unexpected

Usage:
    from quote_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from quote_engine.models.errors import ErrorCode, QuoteEngineError, ServiceError
from quote_engine.utils.logging import get_correlation_id, get_logger

from .dependencies import USER_ID_HEADER

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Authorization -> 403 Forbidden
    ErrorCode.UNAUTHORIZED: HTTP_403_FORBIDDEN,
    # Not found -> 404
    ErrorCode.PACKAGE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.QUOTE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.VERSION_NOT_FOUND: HTTP_404_NOT_FOUND,
    # State conflicts -> 409
    ErrorCode.VERSION_CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.PACKAGE_INACTIVE: HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: HTTP_409_CONFLICT,
    # Malformed input -> 422
    ErrorCode.VALIDATION_ERROR: HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INTERNAL_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def quote_engine_error_handler(
    request: Request, exc: QuoteEngineError
) -> JSONResponse:
    """Convert QuoteEngineError to a ServiceError JSON response."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_service_error().model_dump(mode="json"),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI request validation errors to VALIDATION_ERROR."""
    errors = [
        {
            "loc": ".".join(str(part) for part in error.get("loc", [])),
            "msg": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    error = ServiceError.from_code(ErrorCode.VALIDATION_ERROR, {"errors": errors})
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content=error.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected exception with request context and hide its detail."""
    logger.exception(
        "Unhandled exception in %s %s",
        request.method,
        request.url.path,
        extra={
            "path": request.url.path,
            "actor_id": request.headers.get(USER_ID_HEADER),
            "request_correlation_id": get_correlation_id(),
        },
    )
    error = ServiceError.from_code(ErrorCode.INTERNAL_ERROR)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(QuoteEngineError, quote_engine_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
