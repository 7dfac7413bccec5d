"""Rate limiting middleware for API protection"""
import hmac

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from app.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Dispatch key (the trusted dispatch layer)
    2. IP address (anything else)
    """
    dispatch_key = request.headers.get("x-dispatch-key")
    if dispatch_key and settings.DISPATCH_API_KEY and hmac.compare_digest(
        dispatch_key.encode(), settings.DISPATCH_API_KEY.encode()
    ):
        return "dispatch:authenticated"

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Evaluation is on the write path of every sensitive record
    "evaluate": "3000/minute",
    "audit_write": "1000/minute",
    "audit_read": "100/minute",
    "admin_read": "300/minute",
    "bulk_check": "60/minute",

    # Public endpoints
    "health": "100/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
