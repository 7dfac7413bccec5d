"""API dependencies for authenticating the dispatch layer.

The hosting environment's dispatch layer is the only trusted caller. It
authenticates with a shared key in ``X-Dispatch-Key`` and asserts the end
user's principal in the request body; end users are never authenticated here.
"""
import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.middleware.monitoring import record_auth_failure
from app.policy.engine import PolicyEngine, engine_for_session


def require_dispatcher(x_dispatch_key: Optional[str] = Header(None)) -> str:
    """Require the dispatch layer's shared key.

    Raises 401 when the header is missing and 403 when it does not match.
    """
    if not x_dispatch_key:
        record_auth_failure("missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Provide X-Dispatch-Key header.",
        )

    if not hmac.compare_digest(x_dispatch_key.encode(), settings.DISPATCH_API_KEY.encode()):
        record_auth_failure("invalid")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid dispatch key",
        )
    return "dispatcher"


def get_engine(db: Session = Depends(get_db)) -> PolicyEngine:
    """Policy engine bound to the request's database session."""
    return engine_for_session(db)
