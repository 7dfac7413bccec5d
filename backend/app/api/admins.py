"""Admin directory endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import require_dispatcher
from app.database import get_db
from app.middleware.rate_limit import get_rate_limit, limiter
from app.policy.bulk import BULK_LIMITS, BulkOperation, assert_bulk
from app.policy.directory import AdminDirectory
from app.policy.errors import ErrorKind, PolicyViolation
from app.policy.store import SqlDocumentStore
from app.schemas.admin_profile import AdminProfileResponse, BulkCheckRequest, BulkCheckResponse
from app.utils.logger import logger

router = APIRouter(prefix="/admins", tags=["admins"])

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorKind.MALFORMED_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _http_error(violation: PolicyViolation) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_KIND.get(violation.kind, status.HTTP_403_FORBIDDEN),
        detail={"kind": violation.kind.value, "reason": violation.reason},
    )


@router.get("/{user_id}", response_model=AdminProfileResponse)
@limiter.limit(get_rate_limit("admin_read"))
def get_admin(
    request: Request,
    user_id: str,
    db: Session = Depends(get_db),
    _: str = Depends(require_dispatcher),
):
    """
    Look up an active admin profile (Dispatch auth).

    404 when no profile exists, 403 when the profile is deactivated.
    """
    directory = AdminDirectory(SqlDocumentStore(db))
    try:
        profile = directory.load_active_admin(user_id)
    except PolicyViolation as exc:
        raise _http_error(exc)

    return AdminProfileResponse(**profile._asdict())


@router.post("/bulk-check", response_model=BulkCheckResponse)
@limiter.limit(get_rate_limit("bulk_check"))
def check_bulk_operation(
    request: Request,
    data: BulkCheckRequest,
    db: Session = Depends(get_db),
    _: str = Depends(require_dispatcher),
):
    """
    Pre-check a bulk admin operation (Dispatch auth).

    The caller's role is always read from the admin directory. A caller
    without an active profile gets 404/403; a policy denial answers 200 with
    ``allowed: false``.
    """
    directory = AdminDirectory(SqlDocumentStore(db))
    try:
        caller = directory.load_active_admin(data.caller)
    except PolicyViolation as exc:
        raise _http_error(exc)

    limit = BULK_LIMITS[BulkOperation.parse(data.operation)]
    try:
        assert_bulk(caller.role, data.operation, data.target_count)
    except PolicyViolation as exc:
        logger.warning(
            f"Bulk operation denied for {data.caller}: {exc.reason}",
            extra={"caller": data.caller, "operation": data.operation, "kind": exc.kind.value},
        )
        return BulkCheckResponse(
            allowed=False,
            operation=data.operation,
            target_count=data.target_count,
            limit=limit,
            reason=exc.reason,
        )

    return BulkCheckResponse(
        allowed=True,
        operation=data.operation,
        target_count=data.target_count,
        limit=limit,
    )
