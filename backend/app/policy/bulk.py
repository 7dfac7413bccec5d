"""Bulk-operation guard: super admins only, with a per-operation ceiling."""
from enum import Enum
from typing import Dict, Union

from app.policy.errors import InsufficientRole, LimitExceeded, MalformedInput
from app.policy.roles import Role


class BulkOperation(str, Enum):
    DEACTIVATE = "deactivate"
    DELETE = "delete"
    UPDATE_PERMISSIONS = "update_permissions"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union["BulkOperation", str]) -> "BulkOperation":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


BULK_LIMITS: Dict[BulkOperation, int] = {
    BulkOperation.DEACTIVATE: 10,
    BulkOperation.DELETE: 5,
    BulkOperation.UPDATE_PERMISSIONS: 20,
    BulkOperation.OTHER: 50,
}


def assert_bulk(caller_role: Role, operation: Union[BulkOperation, str], target_count: int) -> None:
    """Raise unless ``caller_role`` may apply ``operation`` to ``target_count`` records."""
    if caller_role != Role.SUPER_ADMIN:
        raise InsufficientRole(
            f"Access Denied: Only super admins can perform bulk operations. "
            f"Your role: {caller_role.value}"
        )

    if target_count < 0:
        raise MalformedInput("Invalid target count: must not be negative")

    op = BulkOperation.parse(operation)
    limit = BULK_LIMITS[op]
    label = operation.value if isinstance(operation, BulkOperation) else operation
    if target_count > limit:
        raise LimitExceeded(
            f"Bulk operation limit exceeded: Maximum {limit} targets for '{label}', "
            f"attempted {target_count}"
        )
