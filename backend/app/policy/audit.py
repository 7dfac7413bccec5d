"""Admin audit trail.

Every accepted sensitive operation produces exactly one :class:`AuditLogEntry`.
The entry is emitted as a structured ``adminguard.audit`` log record and
appended to an :class:`AuditSink`. The default sink stores entries in the
``admin_audit_logs`` table as a SHA-256 hash chain.

Failure policy (fail-closed):
  - the sink rejects the write           -> AuditLogFailure, operation denied
  - the sink cannot be reached at all    -> AUDIT_FAILURE_MODE decides:
        "block"        (default) AuditLogFailure, operation denied
        "best_effort"  operation allowed, lost entry logged at ERROR
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Protocol

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.middleware.monitoring import record_audit_metric
from app.models.audit_log import AdminAuditLog
from app.policy.errors import AuditLogFailure
from app.policy.time_window import NANOS_PER_SECOND
from app.utils import chain as chain_utils
from app.utils.logger import audit_logger, logger


class AuditAction(str, Enum):
    BOOTSTRAP_ADMIN = "bootstrap_admin"
    CREATE_ADMIN = "create_admin"
    UPDATE_ADMIN_PERMISSIONS = "update_admin_permissions"
    DEACTIVATE_ADMIN = "deactivate_admin"
    REACTIVATE_ADMIN = "reactivate_admin"
    DELETE_ADMIN = "delete_admin"
    DISTRIBUTE_PROFIT = "distribute_profit"


class AuditLogEntry(NamedTuple):
    log_id: str
    admin_id: str
    action: AuditAction
    target_collection: str
    target_id: str
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None


class AuditSink(Protocol):
    def append(self, entry: AuditLogEntry) -> None:
        ...


class SqlAuditSink:
    """Appends entries to ``admin_audit_logs``, chaining each to its predecessor."""

    def __init__(self, db: Session):
        self.db = db

    def _append(self, entry: AuditLogEntry) -> None:
        # Lock the latest row so a concurrent append cannot compute the same
        # previous_hash (PostgreSQL FOR UPDATE; SQLite serialises writes).
        prev_log = (
            self.db.query(AdminAuditLog)
            .order_by(AdminAuditLog.id.desc())
            .with_for_update()
            .first()
        )

        if prev_log is None:
            previous_hash = chain_utils.genesis_hash()
        else:
            previous_hash = chain_utils.compute_hash(
                prev_log_id=prev_log.log_id,
                prev_timestamp=prev_log.timestamp,
                current_log_id=entry.log_id,
                current_admin_id=entry.admin_id,
                current_action=entry.action.value,
                current_target=f"{entry.target_collection}/{entry.target_id}",
            )

        row = AdminAuditLog(
            log_id=entry.log_id,
            admin_id=entry.admin_id,
            action=entry.action.value,
            target_collection=entry.target_collection,
            target_id=entry.target_id,
            timestamp=entry.timestamp,
            log_metadata=entry.metadata,
            previous_hash=previous_hash,
        )
        self.db.add(row)
        self.db.commit()

    def append(self, entry: AuditLogEntry) -> None:
        try:
            self._append(entry)
        except SQLAlchemyError:
            self.db.rollback()
            raise


def _sink_unreachable(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def _timestamp(epoch_ns: Optional[int]) -> datetime:
    if epoch_ns is None:
        return datetime.utcnow()
    moment = datetime.fromtimestamp(epoch_ns / NANOS_PER_SECOND, tz=timezone.utc)
    return moment.replace(tzinfo=None)


def log_admin_action(
    sink: AuditSink,
    admin_id: str,
    action: AuditAction,
    target_collection: str,
    target_id: str,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[int] = None,
) -> Optional[AuditLogEntry]:
    """Record one accepted admin operation.

    Args:
        sink:              Where the entry is appended.
        admin_id:          Principal that performed the operation.
        action:            What was done.
        target_collection: Collection of the affected record.
        target_id:         Key of the affected record.
        metadata:          Optional structured payload stored with the entry.
        now:               Epoch nanoseconds; defaults to the wall clock.

    Returns:
        The appended entry, or None when the sink was unreachable and the
        deployment runs in best-effort mode.

    Raises:
        AuditLogFailure: the entry could not be recorded and the operation
            must be rejected.
    """
    entry = AuditLogEntry(
        log_id=str(uuid.uuid4()),
        admin_id=admin_id,
        action=action,
        target_collection=target_collection,
        target_id=target_id,
        timestamp=_timestamp(now),
        metadata=metadata,
    )

    audit_logger.info(
        f"Admin action: {action.value} on {target_collection}/{target_id}",
        extra={
            "admin_id": admin_id,
            "action": action.value,
            "target_collection": target_collection,
            "target_id": target_id,
            "metadata": metadata,
        },
    )

    try:
        sink.append(entry)
    except SQLAlchemyError as exc:
        if _sink_unreachable(exc) and not settings.audit_blocks_when_unreachable:
            record_audit_metric(action.value, "lost")
            logger.error(
                "audit_sink_unreachable: proceeding without a durable audit entry",
                extra={
                    "admin_id": admin_id,
                    "action": action.value,
                    "target_collection": target_collection,
                    "target_id": target_id,
                    "error": str(exc),
                },
            )
            return None

        record_audit_metric(action.value, "failed")
        logger.error(
            f"Audit log write failed for {action.value}",
            extra={"admin_id": admin_id, "action": action.value, "error": str(exc)},
            exc_info=True,
        )
        raise AuditLogFailure(
            f"Audit log could not be written for '{action.value}' on "
            f"{target_collection}/{target_id}; operation rejected"
        ) from exc

    record_audit_metric(action.value, "recorded")
    return entry
