"""
FastAPI middleware for request tracing.

Every request gets a short request id that is bound into the structlog
context, so gateway retries and fallback decisions made while serving
it can be correlated.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)

# Query parameters worth carrying on every log line of a request
_TRACED_PARAMS = ("user_id", "category_slug")


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id, method and path for all logs of a request,
    logs start/end with timing and echoes ``X-Request-ID``.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        for param in _TRACED_PARAMS:
            value = request.query_params.get(param)
            if value:
                bind_context(**{param: value})

        start_time = time.perf_counter()
        logger.info("Request started")

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            raise

        finally:
            clear_context()
