"""
Request Context Middleware.

Binds request_id, frontend, method and path into structlog's context for
the duration of a request and stamps X-Request-ID and X-Response-Time on
the response. With features.api_request_logging on, every request is
logged once at INFO with its status and duration.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)

# Same names as the log sources in logging.py
KNOWN_FRONTENDS = frozenset({"web", "cli", "telegram", "api", "internal"})


def _frontend(request: Request) -> str:
    value = request.headers.get("X-Frontend-ID", "unknown").lower()
    return value if value in KNOWN_FRONTENDS else "unknown"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request id, frontend and timing for every HTTP request.

    The client's X-Request-ID is reused when present so the dashboard can
    correlate its own logs. Handlers read request.state.request_id and
    request.state.frontend.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.frontend = _frontend(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            frontend=request.state.frontend,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request raised",
                extra={"duration_ms": _elapsed_ms(started), "error_type": type(exc).__name__},
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            log = logger.info if get_app_config().features.api_request_logging else logger.debug
            log(
                "Request completed",
                extra={
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "client_host": request.client.host if request.client else None,
                },
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()
