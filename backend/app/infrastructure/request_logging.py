"""HTTP Request Logging — one structured log line per request with a correlation id.

Invariants:
    - Every response carries X-Request-ID (incoming header reused, otherwise uuid4 hex)
    - request.state.request_id is set before the route runs
    - 5xx → ERROR, 4xx → WARNING, everything else → INFO
    - skip_paths are served normally but not logged (health probes)
    - Unhandled exceptions are logged as 500 and re-raised for the error handlers
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("app.http")

REQUEST_ID_HEADER = "X-Request-ID"


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration for each request."""

    def __init__(self, app, skip_paths: list[str] | None = None, enabled: bool = True):
        super().__init__(app)
        self.skip_paths = frozenset(skip_paths or ())
        self.enabled = enabled

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, start, request_id)
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        self._log(request, response.status_code, start, request_id)
        return response

    def _log(
        self, request: Request, status_code: int, start: float, request_id: str,
    ) -> None:
        path = request.url.path
        if not self.enabled or path in self.skip_paths:
            return
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.log(
            level_for_status(status_code),
            f"{request.method} {path} {status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
        )
