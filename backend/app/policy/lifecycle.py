"""Admin profile lifecycle guard.

Governs creation, promotion, demotion, deactivation, reactivation and hard
deletion of admin profiles. Every rule is evaluated against the caller's own
profile as read from the directory, never against claims in the document.

Bootstrap: while the directory is empty, a principal without a profile may
create exactly one profile, its own, with the super_admin role. Once any
profile exists the path is closed.
"""
from typing import Any, Dict, Optional

from app.config import settings
from app.policy.audit import AuditAction, AuditLogEntry, AuditSink, log_admin_action
from app.policy.directory import AdminDirectory
from app.policy.documents import (
    AdminProfile,
    ProposedAdminProfile,
    admin_profile_document,
    format_amount,
    parse_proposed_admin_profile,
)
from app.policy.errors import (
    Inactive,
    InsufficientRole,
    LimitExceeded,
    NotFound,
    SelfActionViolation,
)
from app.policy.roles import Role, is_manager_or_above, rank
from app.utils.logger import logger


def is_admin_directory(collection: str) -> bool:
    return collection == settings.ADMIN_PROFILES_COLLECTION


def _is_bootstrap(directory: AdminDirectory, proposed: ProposedAdminProfile, caller: str) -> bool:
    return (
        proposed.user_id == caller
        and proposed.role == Role.SUPER_ADMIN
        and proposed.is_active
        and directory.is_empty()
    )


def _resolve_caller(directory: AdminDirectory, caller: str) -> AdminProfile:
    profile = directory.find_admin(caller)
    if profile is None:
        raise NotFound(f"Admin profile not found for user: {caller}")
    if not profile.is_active:
        raise Inactive(f"Admin account '{caller}' is inactive")
    return profile


def _audit_action(existing: Optional[AdminProfile], proposed: ProposedAdminProfile) -> AuditAction:
    if existing is None:
        return AuditAction.CREATE_ADMIN
    if existing.is_active and not proposed.is_active:
        return AuditAction.DEACTIVATE_ADMIN
    if not existing.is_active and proposed.is_active:
        return AuditAction.REACTIVATE_ADMIN
    return AuditAction.UPDATE_ADMIN_PERMISSIONS


def evaluate_admin_profile_write(
    directory: AdminDirectory,
    sink: AuditSink,
    key: str,
    proposed_data: Dict[str, Any],
    caller: str,
    now_ns: Optional[int] = None,
) -> Optional[AuditLogEntry]:
    """Validate a create or update of the admin profile stored under ``key``.

    Args:
        directory:     Admin directory used to resolve the caller and target.
        sink:          Audit sink receiving the entry for an accepted write.
        key:           Directory key (target user id) being written.
        proposed_data: Decoded proposed document.
        caller:        Authenticated principal performing the write.
        now_ns:        Clock used to timestamp the audit entry.

    Returns:
        The audit entry recorded for the accepted write (None only in
        best-effort audit mode with an unreachable sink).
    """
    proposed = parse_proposed_admin_profile(proposed_data, key)
    target = proposed.user_id
    caller_profile = directory.find_admin(caller)

    # -------------------------------------------------------------------
    # Bootstrap: no caller profile yet
    # -------------------------------------------------------------------
    if caller_profile is None:
        if _is_bootstrap(directory, proposed, caller):
            logger.warning(
                f"Bootstrapping first super admin: {caller}",
                extra={"caller": caller, "collection": directory.collection, "key": target},
            )
            return log_admin_action(
                sink,
                admin_id=caller,
                action=AuditAction.BOOTSTRAP_ADMIN,
                target_collection=directory.collection,
                target_id=target,
                metadata=admin_profile_document(proposed),
                now=now_ns,
            )
        raise NotFound(
            "Admin profile not found. First user must create a super_admin profile for "
            f"themselves. Your ID: {caller}"
        )

    if not caller_profile.is_active:
        raise Inactive(f"Admin account '{caller}' is inactive")

    # -------------------------------------------------------------------
    # Normal create / modify
    # -------------------------------------------------------------------
    if not is_manager_or_above(caller_profile.role):
        raise InsufficientRole(
            f"Access Denied: Only managers can manage admin profiles. "
            f"Your role: {caller_profile.role.value}"
        )

    is_self = target == caller
    if is_self and caller_profile.role == Role.SUPER_ADMIN and proposed.role != Role.SUPER_ADMIN:
        raise SelfActionViolation(
            "Security Policy: Super admins cannot demote themselves. "
            "Have another super admin change your role."
        )

    if proposed.role == Role.SUPER_ADMIN and caller_profile.role != Role.SUPER_ADMIN:
        raise InsufficientRole(
            "Access Denied: Only super admins can create or promote to super_admin role"
        )

    if is_self and not proposed.is_active:
        raise SelfActionViolation("Security Policy: You cannot deactivate your own admin account")

    existing = caller_profile if is_self else directory.find_admin(target)
    existing_limit = existing.approval_limit if existing else 0.0
    existing_rank = rank(existing.role) if existing else 0

    if (
        proposed.approval_limit > existing_limit
        and caller_profile.role != Role.SUPER_ADMIN
        and proposed.approval_limit > caller_profile.approval_limit
    ):
        raise LimitExceeded(
            f"Access Denied: Cannot set approval limit ({format_amount(proposed.approval_limit)}) "
            f"higher than your own ({format_amount(caller_profile.approval_limit)})"
        )

    new_rank = rank(proposed.role)
    caller_rank = rank(caller_profile.role)
    if new_rank > existing_rank and new_rank >= caller_rank and caller_profile.role != Role.SUPER_ADMIN:
        raise InsufficientRole(
            f"Access Denied: Cannot promote admin to role '{proposed.role.value}' (level {new_rank}) "
            f"when your role is '{caller_profile.role.value}' (level {caller_rank})"
        )

    return log_admin_action(
        sink,
        admin_id=caller,
        action=_audit_action(existing, proposed),
        target_collection=directory.collection,
        target_id=target,
        metadata=admin_profile_document(proposed),
        now=now_ns,
    )


def evaluate_admin_delete(
    directory: AdminDirectory,
    sink: AuditSink,
    key: str,
    caller: str,
    now_ns: Optional[int] = None,
) -> Optional[AuditLogEntry]:
    """Hard delete of an admin profile: super admins only, never their own."""
    caller_profile = _resolve_caller(directory, caller)

    if caller_profile.role != Role.SUPER_ADMIN:
        raise InsufficientRole(
            f"Access Denied: Only super admins can permanently delete admin profiles. "
            f"Your role: {caller_profile.role.value}. Use deactivation instead."
        )
    if key == caller:
        raise SelfActionViolation("Security Policy: You cannot delete your own admin account")

    target = directory.find_admin(key)
    if target is None:
        raise NotFound(f"Admin profile not found for user: {key}")

    return log_admin_action(
        sink,
        admin_id=caller,
        action=AuditAction.DELETE_ADMIN,
        target_collection=directory.collection,
        target_id=key,
        metadata=admin_profile_document(target),
        now=now_ns,
    )
