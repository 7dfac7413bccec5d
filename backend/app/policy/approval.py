"""Approval policy for approval-gated records.

A write is only inspected when it moves the record into the approved status;
every other write to an approval-gated collection passes through untouched.
"""
from typing import Any, Dict, Optional

from app.config import settings
from app.policy.directory import AdminDirectory
from app.policy.documents import (
    AdminProfile,
    format_amount,
    optional_string,
    require_amount,
    require_field,
    require_string,
)
from app.policy.errors import (
    DualAuthRequired,
    IdentityMismatch,
    LimitExceeded,
    MalformedInput,
    SeparationOfDutiesViolation,
    TimeWindowViolation,
)
from app.policy.time_window import utc_moment, within_business_hours


def is_approval_gated(collection: str) -> bool:
    return collection in settings.APPROVAL_GATED_COLLECTIONS


def approval_status(proposed: Dict[str, Any]) -> str:
    """The proposed ``status``; required on approval-gated records."""
    status = require_field(proposed, "status")
    if not isinstance(status, str):
        raise MalformedInput("Invalid status: expected a string")
    return status


def is_approval(proposed: Dict[str, Any]) -> bool:
    return approval_status(proposed) == settings.APPROVED_STATUS


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def check_amount_ceiling(amount: float, admin: AdminProfile) -> None:
    if amount > admin.approval_limit:
        raise LimitExceeded(
            f"Approval Denied: Amount {format_amount(amount)} exceeds your approval limit "
            f"of {format_amount(admin.approval_limit)} ({admin.role.value} role)"
        )


def check_approver_identity(proposed: Dict[str, Any], caller: str) -> str:
    approved_by = require_string(proposed, "approvedBy")
    if approved_by != caller:
        raise IdentityMismatch(
            f"Security violation: approvedBy field ('{approved_by}') does not match "
            f"authenticated caller ('{caller}')"
        )
    return approved_by


def check_time_window(amount: float, now_ns: int) -> None:
    """Approvals above the high-value threshold are limited to business hours."""
    if amount <= settings.HIGH_VALUE_THRESHOLD:
        return

    moment = utc_moment(now_ns)
    if within_business_hours(moment):
        return

    threshold = format_amount(settings.HIGH_VALUE_THRESHOLD)
    if moment.is_weekend:
        raise TimeWindowViolation(
            f"Time Restriction: Approvals above {threshold} cannot be processed on weekends "
            f"({moment.day_name}). Amount: {format_amount(amount)}"
        )
    raise TimeWindowViolation(
        f"Time Restriction: Approvals above {threshold} must be processed between "
        f"{settings.BUSINESS_HOURS_START}:00 and {settings.BUSINESS_HOURS_END}:00 (UTC). "
        f"Current hour: {moment.hour}:00. Amount: {format_amount(amount)}"
    )


def check_dual_authorization(amount: float, proposed: Dict[str, Any], caller: str) -> None:
    if amount <= settings.DUAL_AUTH_THRESHOLD:
        return

    secondary = optional_string(proposed, "secondaryApprover")
    threshold = format_amount(settings.DUAL_AUTH_THRESHOLD)
    if not secondary:
        raise DualAuthRequired(
            f"Dual authorization required: Amount {format_amount(amount)} exceeds the "
            f"{threshold} threshold. A secondary approver must be assigned."
        )
    if secondary == caller:
        raise DualAuthRequired(
            f"Dual authorization required: the secondary approver for {format_amount(amount)} "
            "must be a different principal than the approver"
        )


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------

def evaluate_approval(
    directory: AdminDirectory,
    collection: str,
    proposed: Dict[str, Any],
    caller: str,
    now_ns: int,
) -> None:
    """Validate a transition of an approval-gated record to the approved status.

    Checks run in a fixed order and the first failure raises:
    amount, caller profile, amount ceiling, approver identity, business-hours
    window, dual authorization.
    """
    if not is_approval_gated(collection) or not is_approval(proposed):
        return

    amount = require_amount(proposed, "requestedAmount")
    admin = directory.load_active_admin(caller)
    check_amount_ceiling(amount, admin)
    check_approver_identity(proposed, caller)
    check_time_window(amount, now_ns)
    check_dual_authorization(amount, proposed, caller)


def check_separation_of_duties(
    collection: str,
    proposed: Dict[str, Any],
    current: Optional[Dict[str, Any]] = None,
) -> None:
    """The principal that reviewed a record may not also approve it.

    ``reviewedBy`` is taken from the proposed document, or from the stored
    document when the proposed write omits it.
    """
    if not is_approval_gated(collection) or not is_approval(proposed):
        return

    reviewer = optional_string(proposed, "reviewedBy")
    if not reviewer and current:
        reviewer = optional_string(current, "reviewedBy")

    approver = optional_string(proposed, "approvedBy")
    if reviewer and reviewer == approver:
        raise SeparationOfDutiesViolation(
            f"Separation of duties violation: Reviewer cannot approve their own review "
            f"('{reviewer}')"
        )
