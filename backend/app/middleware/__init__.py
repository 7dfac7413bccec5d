"""Middleware modules for production-ready features"""
from app.middleware.monitoring import (
    MonitoringMiddleware,
    record_decision_metric,
    record_audit_metric,
    record_auth_failure
)
from app.middleware.rate_limit import limiter, get_rate_limit

__all__ = [
    "MonitoringMiddleware",
    "record_decision_metric",
    "record_audit_metric",
    "record_auth_failure",
    "limiter",
    "get_rate_limit"
]
