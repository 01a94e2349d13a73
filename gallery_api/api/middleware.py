"""
FastAPI Middleware for Request Tracking and Logging

Features:
- Request trace IDs for distributed tracing
- Request/response logging with duration
- Prometheus metrics collection
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_api.core.config import settings
from gallery_api.core.logging_config import get_logger, set_trace_id, clear_trace_id
from gallery_api.core.metrics import (
    errors_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)


logger = get_logger(__name__)


def _route_template(request: Request) -> str:
    """Matched route path (``/galleries/{gallery_id}``) to keep label cardinality bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request trace IDs and request logging.

    1. Takes the trace ID from X-Trace-ID / X-Correlation-ID or generates one
    2. Injects it into the logging context for the request
    3. Logs request start and completion with duration
    4. Echoes the trace ID in response headers
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = (
            request.headers.get("X-Trace-ID") or
            request.headers.get("X-Correlation-ID") or
            str(uuid.uuid4())
        )
        set_trace_id(trace_id)

        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.info(
            "request_started",
            method=method,
            path=path,
            client_host=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent", "unknown"),
        )

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Correlation-ID"] = trace_id
            return response

        except Exception as exc:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "request_failed",
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
                error_type=type(exc).__name__,
                error_message=str(exc),
                exc_info=True,
            )
            # Re-raise exception to be handled by FastAPI exception handlers
            raise

        finally:
            clear_trace_id()


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware for automatic Prometheus metrics collection.

    Tracks request counts, durations, in-flight requests and errors.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method

        # Skip metrics for /metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        http_requests_in_progress.labels(service=settings.SERVICE_NAME, method=method).inc()

        start_time = time.time()
        status_code = 500  # Default to error if something goes wrong

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response

        except Exception as exc:
            errors_total.labels(
                service=settings.SERVICE_NAME,
                error_type=type(exc).__name__,
                endpoint=_route_template(request),
            ).inc()
            raise

        finally:
            endpoint = _route_template(request)
            http_requests_in_progress.labels(service=settings.SERVICE_NAME, method=method).dec()
            http_requests_total.labels(
                service=settings.SERVICE_NAME,
                method=method,
                endpoint=endpoint,
                status=status_code,
            ).inc()
            http_request_duration_seconds.labels(
                service=settings.SERVICE_NAME,
                method=method,
                endpoint=endpoint,
            ).observe(time.time() - start_time)
