"""Cryptographic audit log chaining utilities.

Each admin audit entry stores a SHA-256 hash that covers the previous entry's
log_id + timestamp and the current entry's log_id, admin_id, action and
target. A tampered or deleted row produces a hash mismatch detectable by
GET /audit/verify.
"""
import hashlib
from datetime import datetime


def compute_hash(
    prev_log_id: str,
    prev_timestamp: datetime,
    current_log_id: str,
    current_admin_id: str,
    current_action: str,
    current_target: str,
) -> str:
    """Return SHA-256 hex digest linking the current entry to the previous one.

    The input is a pipe-delimited string of the values so the components
    are unambiguous even if individual values contain special characters.

    Args:
        prev_log_id:       log_id of the immediately preceding entry.
        prev_timestamp:    timestamp of the immediately preceding entry.
        current_log_id:    log_id of the entry being inserted.
        current_admin_id:  principal that performed the audited operation.
        current_action:    action field of the entry being inserted.
        current_target:    ``collection/target_id`` of the entry being inserted.

    Returns:
        64-character lowercase hex digest.
    """
    raw = (
        f"{prev_log_id}|{prev_timestamp.isoformat()}|{current_log_id}"
        f"|{current_admin_id}|{current_action}|{current_target}"
    )
    return hashlib.sha256(raw.encode()).hexdigest()


def genesis_hash() -> str:
    """Return the fixed hash used for the very first audit entry.

    Having a deterministic genesis value means the first entry is also
    verifiable: any implementation can recompute SHA-256("GENESIS").
    """
    return hashlib.sha256(b"GENESIS").hexdigest()
