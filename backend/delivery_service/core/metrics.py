"""
Prometheus metrics for observability.

Exposes metrics for:
- HTTP request latency and counts
- Delivery status transitions and assignments
- Event sink publication results
"""

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from delivery_service.core.config import settings

# ============================================================
# HTTP Metrics
# ============================================================

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method", "endpoint"],
)


# ============================================================
# Business Metrics
# ============================================================

DELIVERY_STATUS_TRANSITIONS = Counter(
    "delivery_status_transitions_total",
    "Delivery status changes by target status",
    ["status"],
)

DELIVERY_ASSIGNMENTS = Counter(
    "delivery_assignments_total",
    "Delivery assignments by mode",
    ["mode"],
)

DELIVERY_EVENTS = Counter(
    "delivery_events_total",
    "Events handed to the event sink",
    ["topic", "result"],
)

EVENT_QUEUE_DEPTH = Gauge(
    "delivery_event_queue_depth",
    "Events waiting in the outbound publisher queue",
)


# ============================================================
# Application Info
# ============================================================

APP_INFO = Info(
    "app",
    "Application information",
)
APP_INFO.info(
    {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }
)


# ============================================================
# Middleware
# ============================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP request metrics.

    Tracks:
    - Request duration
    - Request count by endpoint and status
    - In-progress requests
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == settings.METRICS_PATH:
            return await call_next(request)

        method = request.method
        endpoint = normalize_path(request.url.path)

        HTTP_REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()

        start_time = time.perf_counter()
        status_code = "500"
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        finally:
            duration = time.perf_counter() - start_time

            HTTP_REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code,
            ).observe(duration)

            HTTP_REQUEST_TOTAL.labels(
                method=method,
                endpoint=endpoint,
                status_code=status_code,
            ).inc()

            HTTP_REQUEST_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()

        return response


def normalize_path(path: str) -> str:
    """
    Normalize path by replacing dynamic segments with placeholders.

    /deliveries/agent/3f2c...-9a1b -> /deliveries/agent/{id}
    """
    normalized = ["{id}" if _is_id(part) else part for part in path.split("/") if part]
    return "/" + "/".join(normalized) if normalized else "/"


def _is_id(part: str) -> bool:
    """Check if path part is likely an ID."""
    if len(part) == 36 and part.count("-") == 4:
        return True
    return part.isdigit()


# ============================================================
# Helper Functions
# ============================================================


def record_status_transition(status: str) -> None:
    DELIVERY_STATUS_TRANSITIONS.labels(status=status).inc()


def record_assignment(mode: str) -> None:
    DELIVERY_ASSIGNMENTS.labels(mode=mode).inc()


def record_event(topic: str, result: str) -> None:
    """Record an event hand-off outcome (queued, sent, dropped, failed)."""
    DELIVERY_EVENTS.labels(topic=topic, result=result).inc()


# ============================================================
# Metrics Endpoint
# ============================================================


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
