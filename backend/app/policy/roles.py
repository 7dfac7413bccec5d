"""Role hierarchy and the fixed permission table.

Role hierarchy (higher level -> more permissions):
    super_admin (5) > manager (4) > approver (3) > reviewer (2) > viewer (1)

``business`` and ``member`` are platform roles outside the admin hierarchy;
they rank 0, like any unrecognized string, and never satisfy an admin
requirement.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from app.policy.errors import InsufficientRole


class Role(str, Enum):
    VIEWER = "viewer"
    REVIEWER = "reviewer"
    APPROVER = "approver"
    MANAGER = "manager"
    SUPER_ADMIN = "super_admin"

    # Non-admin roles
    BUSINESS = "business"
    MEMBER = "member"

    @classmethod
    def from_admin_value(cls, value: object) -> Optional["Role"]:
        """Strict parse of a stored or proposed admin role. Returns None when not an admin role."""
        if not isinstance(value, str):
            return None
        try:
            role = cls(value)
        except ValueError:
            return None
        return role if role in ADMIN_ROLES else None


_ROLE_HIERARCHY: Dict[Role, int] = {
    Role.VIEWER: 1,
    Role.REVIEWER: 2,
    Role.APPROVER: 3,
    Role.MANAGER: 4,
    Role.SUPER_ADMIN: 5,
}

ADMIN_ROLES: FrozenSet[Role] = frozenset(_ROLE_HIERARCHY)


def rank(role: Union[Role, str, None]) -> int:
    """Privilege level of ``role``; 0 for non-admin or unrecognized values."""
    if isinstance(role, Role):
        return _ROLE_HIERARCHY.get(role, 0)
    if isinstance(role, str):
        try:
            return _ROLE_HIERARCHY.get(Role(role), 0)
        except ValueError:
            return 0
    return 0


def has_sufficient_role(actual: Union[Role, str, None], required: Union[Role, str]) -> bool:
    """True when ``actual`` ranks at or above ``required``."""
    return rank(actual) >= rank(required)


def is_admin(role: Role) -> bool:
    return role in ADMIN_ROLES


def is_manager_or_above(role: Role) -> bool:
    return has_sufficient_role(role, Role.MANAGER)


def can_approve(role: Role) -> bool:
    return has_sufficient_role(role, Role.REVIEWER)


# ---------------------------------------------------------------------------
# Permission table
# ---------------------------------------------------------------------------

class Permission(str, Enum):
    APPROVE_APPLICATION = "approve_application"
    REJECT_APPLICATION = "reject_application"
    REVIEW_KYC = "review_kyc"
    MANAGE_TEAM = "manage_team"
    DISTRIBUTE_PROFITS = "distribute_profits"
    SUBMIT_APPLICATION = "submit_application"
    UPLOAD_DOCUMENTS = "upload_documents"
    INVEST = "invest"
    VIEW_OPPORTUNITIES = "view_opportunities"
    CREATE_OPPORTUNITY = "create_opportunity"


def _authenticated(role: Role) -> bool:
    return True


def _business_or_admin(role: Role) -> bool:
    return role == Role.BUSINESS or is_admin(role)


# (predicate, who-may-do-it wording for the denial reason)
_PERMISSION_TABLE = {
    Permission.APPROVE_APPLICATION: (can_approve, "admin staff (Reviewer or above)"),
    Permission.REJECT_APPLICATION: (can_approve, "admin staff (Reviewer or above)"),
    Permission.REVIEW_KYC: (is_admin, "admin staff"),
    Permission.MANAGE_TEAM: (is_manager_or_above, "Managers or Super Admins"),
    Permission.DISTRIBUTE_PROFITS: (is_manager_or_above, "Managers or Super Admins"),
    Permission.CREATE_OPPORTUNITY: (is_manager_or_above, "Managers or Super Admins"),
    Permission.SUBMIT_APPLICATION: (_business_or_admin, "businesses"),
    Permission.UPLOAD_DOCUMENTS: (_business_or_admin, "businesses"),
    Permission.INVEST: (_authenticated, "authenticated users"),
    Permission.VIEW_OPPORTUNITIES: (_authenticated, "authenticated users"),
}


def check_permission(role: Role, permission: Permission, resource: str = "") -> None:
    """Raise :class:`InsufficientRole` unless ``role`` may exercise ``permission``.

    A permission missing from the table is denied.
    """
    entry = _PERMISSION_TABLE.get(permission)
    if entry is None:
        raise InsufficientRole(f"Access Denied: '{permission.value}' is not granted to any role")

    predicate, holders = entry
    if not predicate(role):
        target = f" on {resource}" if resource else ""
        raise InsufficientRole(
            f"Access Denied: Only {holders} can {permission.value}{target}. Your role: {role.value}"
        )

