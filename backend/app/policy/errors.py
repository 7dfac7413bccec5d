"""Policy violation taxonomy and the decision value returned to the dispatch layer.

Every denial is a :class:`PolicyViolation` subclass carrying an
:class:`ErrorKind` and a human-readable reason that is surfaced to the caller
verbatim. All kinds are terminal: the proposed write is rejected as a whole
and nothing is retried.
"""
from enum import Enum
from typing import NamedTuple, Optional


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    MISSING_FIELD = "missing_field"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    INSUFFICIENT_ROLE = "insufficient_role"
    LIMIT_EXCEEDED = "limit_exceeded"
    TIME_WINDOW_VIOLATION = "time_window_violation"
    DUAL_AUTH_REQUIRED = "dual_auth_required"
    SELF_ACTION_VIOLATION = "self_action_violation"
    SEPARATION_OF_DUTIES_VIOLATION = "separation_of_duties_violation"
    IDENTITY_MISMATCH = "identity_mismatch"
    STORE_UNAVAILABLE = "store_unavailable"
    AUDIT_LOG_FAILURE = "audit_log_failure"


# Denials that indicate tampering or an attempt to bypass a safeguard rather
# than an ordinary lack of permission; these raise a security alert.
SECURITY_ALERT_KINDS = frozenset({
    ErrorKind.IDENTITY_MISMATCH,
    ErrorKind.SELF_ACTION_VIOLATION,
    ErrorKind.SEPARATION_OF_DUTIES_VIOLATION,
})


class PolicyViolation(Exception):
    kind: ErrorKind = ErrorKind.MALFORMED_INPUT
    reason: str = "Policy violation"

    def __init__(self, reason: Optional[str] = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class MalformedInput(PolicyViolation):
    kind = ErrorKind.MALFORMED_INPUT
    reason = "Malformed document"


class MissingField(PolicyViolation):
    kind = ErrorKind.MISSING_FIELD
    reason = "Missing required field"


class NotFound(PolicyViolation):
    kind = ErrorKind.NOT_FOUND
    reason = "Admin profile not found"


class Inactive(PolicyViolation):
    kind = ErrorKind.INACTIVE
    reason = "Admin account is inactive"


class InsufficientRole(PolicyViolation):
    kind = ErrorKind.INSUFFICIENT_ROLE
    reason = "Access Denied: insufficient role"


class LimitExceeded(PolicyViolation):
    kind = ErrorKind.LIMIT_EXCEEDED
    reason = "Limit exceeded"


class TimeWindowViolation(PolicyViolation):
    kind = ErrorKind.TIME_WINDOW_VIOLATION
    reason = "Time Restriction: operation not allowed at this time"


class DualAuthRequired(PolicyViolation):
    kind = ErrorKind.DUAL_AUTH_REQUIRED
    reason = "Dual authorization required"


class SelfActionViolation(PolicyViolation):
    kind = ErrorKind.SELF_ACTION_VIOLATION
    reason = "Security Policy: this action cannot target your own account"


class SeparationOfDutiesViolation(PolicyViolation):
    kind = ErrorKind.SEPARATION_OF_DUTIES_VIOLATION
    reason = "Separation of duties violation: Reviewer cannot approve their own review"


class IdentityMismatch(PolicyViolation):
    kind = ErrorKind.IDENTITY_MISMATCH
    reason = "Security violation: identity field does not match authenticated caller"


class StoreUnavailable(PolicyViolation):
    kind = ErrorKind.STORE_UNAVAILABLE
    reason = "Admin directory is unavailable"


class AuditLogFailure(PolicyViolation):
    kind = ErrorKind.AUDIT_LOG_FAILURE
    reason = "Audit log could not be written"


class Decision(NamedTuple):
    """Outcome of one evaluation. ``kind`` and ``reason`` describe the denial."""
    allowed: bool
    kind: Optional[ErrorKind] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, violation: PolicyViolation) -> "Decision":
        return cls(allowed=False, kind=violation.kind, reason=violation.reason)
