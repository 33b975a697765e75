"""
Observability middleware and logging setup.

Adds correlation IDs and structured logging context to requests.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

logger = logging.getLogger("trips.http")


def configure_logging(level: str) -> None:
    """Configure the ``trips`` logger hierarchy from a level name."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"could not parse LOG_LEVEL: {level}")

    root = logging.getLogger("trips")
    root.setLevel(numeric_level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Tags every request with a correlation id and logs its outcome."""

    def __init__(self, app, session_cookie_name: str = "session_id"):
        super().__init__(app)
        self.session_cookie_name = session_cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            # never log the session cookie value itself
            "has_session": self.session_cookie_name in request.cookies,
        }

        if response.status_code >= 500:
            logger.error("%s %s -> %d", request.method, request.url.path, response.status_code, extra=log_data)
        elif response.status_code >= 400:
            logger.warning("%s %s -> %d", request.method, request.url.path, response.status_code, extra=log_data)
        else:
            logger.info("%s %s -> %d", request.method, request.url.path, response.status_code, extra=log_data)

        return response
