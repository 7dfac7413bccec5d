"""Guards for profit distributions and admin-only collections."""
from typing import Any, Dict, Optional

from app.config import settings
from app.policy.audit import AuditAction, AuditLogEntry, AuditSink, log_admin_action
from app.policy.directory import AdminDirectory
from app.policy.documents import require_string
from app.policy.errors import IdentityMismatch
from app.policy.roles import Permission, check_permission

# Field naming the creating admin, per admin-only collection.
_CREATOR_FIELDS = {
    "admin_audit_logs": "adminId",
}
_DEFAULT_CREATOR_FIELD = "createdBy"


def is_profit_distribution(collection: str) -> bool:
    return collection == settings.PROFIT_DISTRIBUTIONS_COLLECTION


def is_admin_only(collection: str) -> bool:
    return collection in settings.ADMIN_ONLY_COLLECTIONS


def creator_field(collection: str) -> str:
    return _CREATOR_FIELDS.get(collection, _DEFAULT_CREATOR_FIELD)


def evaluate_profit_distribution(
    directory: AdminDirectory,
    sink: AuditSink,
    collection: str,
    key: str,
    proposed: Dict[str, Any],
    caller: str,
    now_ns: Optional[int] = None,
) -> Optional[AuditLogEntry]:
    """Only active managers and above may record a profit distribution."""
    admin = directory.load_active_admin(caller)
    check_permission(admin.role, Permission.DISTRIBUTE_PROFITS)

    return log_admin_action(
        sink,
        admin_id=caller,
        action=AuditAction.DISTRIBUTE_PROFIT,
        target_collection=collection,
        target_id=key,
        metadata=proposed,
        now=now_ns,
    )


def evaluate_admin_only_write(
    directory: AdminDirectory,
    collection: str,
    proposed: Dict[str, Any],
    caller: str,
) -> None:
    """Admin-only records must be written by an active admin naming itself as creator."""
    directory.load_active_admin(caller)

    field = creator_field(collection)
    creator = require_string(proposed, field)
    if creator != caller:
        raise IdentityMismatch(
            f"Security violation: {field} field ('{creator}') does not match "
            f"authenticated caller ('{caller}')"
        )
