"""Admin authorization and approval policy"""
from app.policy.errors import Decision, ErrorKind, PolicyViolation
from app.policy.roles import Role
from app.policy.audit import AuditAction, log_admin_action
from app.policy.bulk import BulkOperation, assert_bulk
from app.policy.engine import PolicyEngine, engine_for_session

__all__ = [
    "Decision",
    "ErrorKind",
    "PolicyViolation",
    "Role",
    "AuditAction",
    "log_admin_action",
    "BulkOperation",
    "assert_bulk",
    "PolicyEngine",
    "engine_for_session",
]
