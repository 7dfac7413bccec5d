"""Monitoring and observability middleware"""
import time
from typing import Callable
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from app.config import settings
from app.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "adminguard_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "adminguard_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Policy metrics
policy_decisions_total = Counter(
    "adminguard_policy_decisions_total",
    "Total policy decisions",
    ["collection", "operation", "outcome"]  # outcome: allowed or the denial kind
)

audit_entries_total = Counter(
    "adminguard_audit_entries_total",
    "Total admin audit entries",
    ["action", "result"]  # recorded, failed, lost
)

# Error metrics
http_errors_total = Counter(
    "adminguard_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

authentication_failures_total = Counter(
    "adminguard_authentication_failures_total",
    "Total authentication failures",
    ["type"]  # missing, invalid
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={
                        "request_id": request_id,
                        "method": method,
                        "path": endpoint,
                        "duration": duration,
                        "status": status
                    }
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception as e:
            duration = time.time() - start_time
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": endpoint,
                    "duration": duration,
                    "error": str(e)
                },
                exc_info=True
            )
            raise


def record_decision_metric(collection: str, operation: str, outcome: str):
    """Record a policy decision (outcome is "allowed" or the denial kind)"""
    if collection not in settings.policed_collections:
        collection = "other"
    policy_decisions_total.labels(
        collection=collection,
        operation=operation,
        outcome=outcome
    ).inc()


def record_audit_metric(action: str, result: str):
    """Record an audit append outcome"""
    audit_entries_total.labels(action=action, result=result).inc()


def record_auth_failure(auth_type: str):
    """Record authentication failure"""
    authentication_failures_total.labels(type=auth_type).inc()
