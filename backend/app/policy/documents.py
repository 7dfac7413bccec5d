"""Typed views over raw JSON documents.

Proposed writes arrive as raw bytes from the storage layer. They are decoded
once here and every field the policy depends on is extracted explicitly:
a missing required field is reported as missing, never silently replaced by
a zero or an empty string.
"""
import json
import math
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from app.config import settings
from app.policy.errors import MalformedInput, MissingField
from app.policy.roles import Role

RawDocument = Union[bytes, str, Dict[str, Any], None]


class AdminProfile(NamedTuple):
    """An administrator as recorded in the admin directory."""
    user_id: str
    display_name: str
    role: Role
    approval_limit: float
    is_active: bool


class ProposedAdminProfile(NamedTuple):
    """The admin profile a caller wants to store."""
    user_id: str
    display_name: str
    role: Role
    approval_limit: float
    is_active: bool
    raw: Dict[str, Any]


def decode_document(raw: RawDocument, label: str = "document") -> Dict[str, Any]:
    """Decode raw document bytes into a JSON object.

    Raises:
        MalformedInput: bytes are not UTF-8, not JSON, or not a JSON object.
    """
    if isinstance(raw, dict):
        return raw
    if raw is None:
        raise MalformedInput(f"Missing {label} data")

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedInput(f"Failed to decode {label} as UTF-8: {exc}") from exc

    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise MalformedInput(f"Invalid JSON in {label}: {exc}") from exc
    except RecursionError as exc:
        raise MalformedInput(f"Invalid {label} format: nesting too deep") from exc

    if not isinstance(data, dict):
        raise MalformedInput(f"Invalid {label} format: expected a JSON object")
    return data


def _finite_number(value: Any) -> Optional[float]:
    """The value as a finite float, or None when it is not a usable JSON number."""
    # bool is an int subclass; JSON true/false is never an amount
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def require_field(data: Dict[str, Any], field: str) -> Any:
    if field not in data or data[field] is None:
        raise MissingField(f"Missing {field} field")
    return data[field]


def require_string(data: Dict[str, Any], field: str) -> str:
    value = require_field(data, field)
    if not isinstance(value, str):
        raise MalformedInput(f"Invalid {field}: expected a string")
    if not value:
        raise MissingField(f"Missing {field} field")
    return value


def optional_string(data: Dict[str, Any], field: str) -> str:
    """Value of an optional principal/text field; absent or null reads as ''."""
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedInput(f"Invalid {field}: expected a string")
    return value


def require_amount(data: Dict[str, Any], field: str = "requestedAmount") -> float:
    """A strictly positive, finite monetary amount."""
    value = _finite_number(require_field(data, field))
    if value is None:
        raise MalformedInput(f"Missing or invalid {field}: expected a number")
    if value <= 0:
        raise MalformedInput(f"Invalid {field}: must be greater than zero")
    return value


def parse_proposed_admin_profile(data: Dict[str, Any], key: str) -> ProposedAdminProfile:
    """Parse a proposed write to the admin directory.

    ``role`` and ``approvalLimit`` are required; ``isActive`` defaults to True
    and ``displayName`` to the user id.
    """
    if not key:
        raise MalformedInput("Missing admin profile key")
    user_id = require_string(data, "userId")
    if user_id != key:
        raise MalformedInput(
            f"userId ('{user_id}') does not match the admin profile key ('{key}')"
        )

    raw_role = require_field(data, "role")
    role = Role.from_admin_value(raw_role)
    if role is None:
        raise MalformedInput(f"Invalid role '{raw_role}': not an admin role")

    approval_limit = _finite_number(require_field(data, "approvalLimit"))
    if approval_limit is None or approval_limit < 0:
        raise MalformedInput("Invalid approvalLimit: expected a non-negative number")

    is_active = data.get("isActive", True)
    if not isinstance(is_active, bool):
        raise MalformedInput("Invalid isActive: expected a boolean")

    display_name = data.get("displayName") or user_id
    if not isinstance(display_name, str):
        raise MalformedInput("Invalid displayName: expected a string")

    return ProposedAdminProfile(
        user_id=user_id,
        display_name=display_name,
        role=role,
        approval_limit=approval_limit,
        is_active=is_active,
        raw=data,
    )


def parse_stored_admin_profile(data: Dict[str, Any], key: str) -> Tuple[AdminProfile, List[str]]:
    """Parse a stored admin profile with least-privilege defaults.

    Returns the profile and the list of fields that had to be defaulted so
    the caller can report them. The directory key is the principal, so it
    wins over any ``userId`` stored in the body.
    """
    defaulted = []

    role = Role.from_admin_value(data.get("role"))
    if role is None:
        role = Role.VIEWER
        defaulted.append("role")

    approval_limit = _finite_number(data.get("approvalLimit"))
    if approval_limit is None or approval_limit < 0:
        approval_limit = 0.0
        defaulted.append("approvalLimit")

    is_active = data.get("isActive")
    if not isinstance(is_active, bool):
        is_active = False
        defaulted.append("isActive")

    display_name = data.get("displayName")
    if not isinstance(display_name, str) or not display_name:
        display_name = "Unknown"

    profile = AdminProfile(
        user_id=key,
        display_name=display_name,
        role=role,
        approval_limit=approval_limit,
        is_active=is_active,
    )
    return profile, defaulted


def admin_profile_document(profile: Union[AdminProfile, ProposedAdminProfile]) -> Dict[str, Any]:
    """Serialize a profile in the stored camelCase layout."""
    return {
        "userId": profile.user_id,
        "displayName": profile.display_name,
        "role": profile.role.value,
        "approvalLimit": profile.approval_limit,
        "isActive": profile.is_active,
    }


def format_amount(amount: float, symbol: Optional[str] = None) -> str:
    return f"{settings.CURRENCY_SYMBOL if symbol is None else symbol}{amount:,.2f}"
