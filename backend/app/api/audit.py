"""Admin audit log endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.deps import require_dispatcher
from app.database import get_db
from app.middleware.rate_limit import get_rate_limit, limiter
from app.models.audit_log import AdminAuditLog
from app.policy.audit import AuditAction, SqlAuditSink, log_admin_action
from app.policy.errors import AuditLogFailure
from app.schemas.audit_log import AuditLogCreate, AuditLogResponse, ChainVerifyResponse
from app.utils import chain as chain_utils

router = APIRouter(prefix="/audit", tags=["audit"])


@router.post("", response_model=AuditLogResponse, status_code=201)
@limiter.limit(get_rate_limit("audit_write"))
def create_log(
    request: Request,
    log_data: AuditLogCreate,
    db: Session = Depends(get_db),
    _: str = Depends(require_dispatcher),
):
    """
    Record an admin action (Dispatch auth).

    Entries are append-only. Each is linked to the previous one via a SHA-256
    hash stored in ``previous_hash``, forming a tamper-evident chain
    verifiable at GET /audit/verify.

    Answers 503 when the entry could not be written; the caller must then
    treat the triggering operation as failed.
    """
    try:
        entry = log_admin_action(
            SqlAuditSink(db),
            admin_id=log_data.admin_id,
            action=log_data.action,
            target_collection=log_data.target_collection,
            target_id=log_data.target_id,
            metadata=log_data.metadata,
        )
    except AuditLogFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.reason,
        )

    if entry is None:
        # Best-effort mode with the sink unreachable: nothing durable to return.
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit sink unreachable; entry was not persisted",
        )

    return db.query(AdminAuditLog).filter(AdminAuditLog.log_id == entry.log_id).first()


@router.get("/verify", response_model=ChainVerifyResponse)
@limiter.limit(get_rate_limit("audit_read"))
def verify_chain(
    request: Request,
    db: Session = Depends(get_db),
    _: str = Depends(require_dispatcher),
):
    """
    Verify the admin audit log chain (Dispatch auth).

    Walks all entries in insertion order and recomputes each SHA-256 hash.
    Returns whether the chain is intact and, if not, the log_id of the first
    broken link.
    """
    logs = db.query(AdminAuditLog).order_by(AdminAuditLog.id.asc()).all()

    # Walk the chain - first entry must have genesis_hash as its previous_hash
    for i, entry in enumerate(logs):
        if i == 0:
            expected = chain_utils.genesis_hash()
        else:
            prev = logs[i - 1]
            expected = chain_utils.compute_hash(
                prev_log_id=prev.log_id,
                prev_timestamp=prev.timestamp,
                current_log_id=entry.log_id,
                current_admin_id=entry.admin_id,
                current_action=entry.action,
                current_target=f"{entry.target_collection}/{entry.target_id}",
            )

        if entry.previous_hash != expected:
            return ChainVerifyResponse(
                valid=False,
                total_entries=len(logs),
                broken_at=entry.log_id,
            )

    return ChainVerifyResponse(valid=True, total_entries=len(logs), broken_at=None)


@router.get("", response_model=List[AuditLogResponse])
@limiter.limit(get_rate_limit("audit_read"))
def query_logs(
    request: Request,
    admin_id: Optional[str] = Query(None, description="Filter by acting admin"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    target_collection: Optional[str] = Query(None, description="Filter by target collection"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of entries to return"),
    offset: int = Query(0, ge=0, description="Number of entries to skip"),
    db: Session = Depends(get_db),
    _: str = Depends(require_dispatcher),
):
    """Query admin audit entries, newest first (Dispatch auth)."""
    query = db.query(AdminAuditLog)

    if admin_id:
        query = query.filter(AdminAuditLog.admin_id == admin_id)
    if action:
        query = query.filter(AdminAuditLog.action == action.value)
    if target_collection:
        query = query.filter(AdminAuditLog.target_collection == target_collection)

    query = query.order_by(AdminAuditLog.id.desc())
    return query.offset(offset).limit(limit).all()
