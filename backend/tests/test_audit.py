"""Tests for admin audit logging and the hash chain"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError

from app.config import settings
from app.models.audit_log import AdminAuditLog
from app.policy.audit import AuditAction, SqlAuditSink, log_admin_action
from app.policy.engine import PolicyEngine
from app.policy.errors import AuditLogFailure, ErrorKind
from app.utils import chain as chain_utils


class _UnreachableSink:
    def append(self, entry):
        raise OperationalError("INSERT", {}, Exception("could not connect to server"))


class _RejectingSink:
    def append(self, entry):
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))


def test_log_admin_action_appends_entry(db):
    entry = log_admin_action(
        SqlAuditSink(db),
        admin_id="super-1",
        action=AuditAction.DELETE_ADMIN,
        target_collection="admin_profiles",
        target_id="mgr-1",
        metadata={"role": "manager"},
    )
    assert entry is not None

    row = db.query(AdminAuditLog).one()
    assert row.log_id == entry.log_id
    assert row.action == "delete_admin"
    assert row.log_metadata == {"role": "manager"}
    assert row.previous_hash == chain_utils.genesis_hash()


def test_entries_are_chained(db):
    sink = SqlAuditSink(db)
    for target in ("a", "b", "c"):
        log_admin_action(sink, "super-1", AuditAction.UPDATE_ADMIN_PERMISSIONS, "admin_profiles", target)

    rows = db.query(AdminAuditLog).order_by(AdminAuditLog.id.asc()).all()
    for prev, row in zip(rows, rows[1:]):
        assert row.previous_hash == chain_utils.compute_hash(
            prev_log_id=prev.log_id,
            prev_timestamp=prev.timestamp,
            current_log_id=row.log_id,
            current_admin_id=row.admin_id,
            current_action=row.action,
            current_target=f"admin_profiles/{row.target_id}",
        )


def test_sink_rejection_is_hard_failure(monkeypatch):
    monkeypatch.setattr(settings, "AUDIT_FAILURE_MODE", "best_effort")
    with pytest.raises(AuditLogFailure):
        log_admin_action(_RejectingSink(), "super-1", AuditAction.DELETE_ADMIN, "admin_profiles", "x")


def test_unreachable_sink_blocks_by_default():
    with pytest.raises(AuditLogFailure):
        log_admin_action(_UnreachableSink(), "super-1", AuditAction.DELETE_ADMIN, "admin_profiles", "x")


def test_unreachable_sink_best_effort(monkeypatch):
    monkeypatch.setattr(settings, "AUDIT_FAILURE_MODE", "best_effort")
    entry = log_admin_action(_UnreachableSink(), "super-1", AuditAction.DELETE_ADMIN, "admin_profiles", "x")
    assert entry is None


def test_audit_failure_denies_the_operation(store, seed_admin, business_hours):
    seed_admin("super-1", role="super_admin", approval_limit=1_000_000_000)
    seed_admin("mgr-1", role="manager")
    engine = PolicyEngine(store, _UnreachableSink(), clock=lambda: business_hours)

    decision = engine.evaluate_delete("admin_profiles", "mgr-1", caller="super-1")
    assert not decision.allowed
    assert decision.kind == ErrorKind.AUDIT_LOG_FAILURE


def test_best_effort_allows_the_operation(store, seed_admin, business_hours, monkeypatch):
    monkeypatch.setattr(settings, "AUDIT_FAILURE_MODE", "best_effort")
    seed_admin("super-1", role="super_admin", approval_limit=1_000_000_000)
    seed_admin("mgr-1", role="manager")
    engine = PolicyEngine(store, _UnreachableSink(), clock=lambda: business_hours)

    assert engine.evaluate_delete("admin_profiles", "mgr-1", caller="super-1").allowed


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def _entry(target_id: str) -> dict:
    return {
        "admin_id": "super-1",
        "action": "deactivate_admin",
        "target_collection": "admin_profiles",
        "target_id": target_id,
        "metadata": {"reason": "left the company"},
    }


def test_create_log(client: TestClient, dispatch_headers: dict):
    response = client.post("/audit", json=_entry("mgr-1"), headers=dispatch_headers)
    assert response.status_code == 201

    data = response.json()
    assert data["action"] == "deactivate_admin"
    assert data["target_id"] == "mgr-1"
    assert data["metadata"] == {"reason": "left the company"}
    assert len(data["previous_hash"]) == 64


def test_create_log_rejects_unknown_action(client: TestClient, dispatch_headers: dict):
    body = {**_entry("mgr-1"), "action": "format_disk"}
    response = client.post("/audit", json=body, headers=dispatch_headers)
    assert response.status_code == 422


def test_create_log_requires_dispatch_auth(client: TestClient):
    response = client.post("/audit", json=_entry("mgr-1"))
    assert response.status_code == 401


def test_query_logs(client: TestClient, dispatch_headers: dict):
    for target in ("a", "b", "c"):
        client.post("/audit", json=_entry(target), headers=dispatch_headers)
    client.post("/audit", json={**_entry("d"), "admin_id": "super-2"}, headers=dispatch_headers)

    response = client.get("/audit", headers=dispatch_headers)
    assert response.status_code == 200
    assert [e["target_id"] for e in response.json()] == ["d", "c", "b", "a"]

    response = client.get("/audit", params={"admin_id": "super-2"}, headers=dispatch_headers)
    assert len(response.json()) == 1

    response = client.get("/audit", params={"limit": 2, "offset": 1}, headers=dispatch_headers)
    assert [e["target_id"] for e in response.json()] == ["c", "b"]


def test_verify_chain_intact(client: TestClient, dispatch_headers: dict):
    response = client.get("/audit/verify", headers=dispatch_headers)
    assert response.json() == {"valid": True, "total_entries": 0, "broken_at": None}

    for target in ("a", "b", "c"):
        client.post("/audit", json=_entry(target), headers=dispatch_headers)

    response = client.get("/audit/verify", headers=dispatch_headers)
    data = response.json()
    assert data["valid"] is True
    assert data["total_entries"] == 3


def test_verify_chain_detects_tampering(client: TestClient, dispatch_headers: dict, db):
    for target in ("a", "b", "c"):
        client.post("/audit", json=_entry(target), headers=dispatch_headers)

    row = db.query(AdminAuditLog).filter(AdminAuditLog.target_id == "c").one()
    row.admin_id = "someone-else"
    db.commit()

    response = client.get("/audit/verify", headers=dispatch_headers)
    data = response.json()
    assert data["valid"] is False
    assert data["broken_at"] == row.log_id
