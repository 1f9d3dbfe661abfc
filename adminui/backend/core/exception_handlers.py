"""
Exception Handlers.

Every error leaves the API in the ErrorResponse envelope with the request
id in its metadata. ApplicationError subclasses get the status from
EXCEPTION_STATUS_MAP (nearest base class wins), request validation gets
422, anything else 500 with the details kept in the log.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from adminui.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    ValidationError,
)
from adminui.backend.core.logging import get_logger
from adminui.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

# Map exception types to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    ConflictError: 409,
    RateLimitError: 429,
    ExternalServiceError: 502,
    DatabaseError: 503,
    ServiceUnavailableError: 503,
}


def status_for(exc: ApplicationError) -> int:
    """Resolve the HTTP status for an exception, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _request_id(request: Request) -> str | None:
    """Id set by RequestContextMiddleware, else the raw header."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _envelope(
    request: Request,
    status_code: int,
    detail: ErrorDetail,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=detail, metadata=ResponseMetadata(request_id=_request_id(request)))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _challenge_headers(exc: ApplicationError) -> dict[str, str] | None:
    if isinstance(exc, RateLimitError) and exc.retry_after_seconds:
        return {"Retry-After": str(exc.retry_after_seconds)}
    if isinstance(exc, AuthenticationError):
        return {"WWW-Authenticate": "Bearer"}
    return None


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """
    Render an ApplicationError with its mapped status.

    ValidationError details are passed through; 429 carries Retry-After
    and 401 carries WWW-Authenticate.
    """
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={
            "error_code": exc.code,
            "error": exc.message,
            "status": status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    detail = ErrorDetail(code=exc.code, message=exc.message)
    if isinstance(exc, ValidationError) and exc.details:
        detail.details = exc.details
    return _envelope(request, status_code, detail, _challenge_headers(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body or query failed pydantic validation: 422 with one entry per field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "fields": [e["field"] for e in errors]},
    )
    detail = ErrorDetail(
        code="VAL_REQUEST_INVALID",
        message="Request validation failed",
        details={"validation_errors": errors},
    )
    return _envelope(request, 422, detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only gets a generic 500."""
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    detail = ErrorDetail(code="SYS_INTERNAL_ERROR", message="An unexpected error occurred")
    return _envelope(request, 500, detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
