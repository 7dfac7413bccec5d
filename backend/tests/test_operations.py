"""Tests for profit distribution and admin-only collection guards"""
from app.models.audit_log import AdminAuditLog
from app.policy.errors import ErrorKind


def test_manager_distributes_profit(policy, seed_admin, db):
    seed_admin("mgr-1", role="manager")
    doc = {"opportunityId": "opp-1", "totalProfit": 1_250_000}

    decision = policy.evaluate_write("profit_distributions", "dist-1", doc, caller="mgr-1")
    assert decision.allowed

    entry = db.query(AdminAuditLog).one()
    assert entry.action == "distribute_profit"
    assert entry.target_collection == "profit_distributions"
    assert entry.target_id == "dist-1"
    assert entry.log_metadata == doc


def test_approver_cannot_distribute_profit(policy, seed_admin, db):
    seed_admin("appr-1", role="approver")
    decision = policy.evaluate_write("profit_distributions", "dist-1", {"totalProfit": 1}, caller="appr-1")

    assert decision.kind == ErrorKind.INSUFFICIENT_ROLE
    assert db.query(AdminAuditLog).count() == 0


def test_non_admin_cannot_distribute_profit(policy):
    decision = policy.evaluate_write("profit_distributions", "dist-1", {"totalProfit": 1}, caller="member-1")
    assert decision.kind == ErrorKind.NOT_FOUND


def test_admin_only_collection_requires_creator(policy, seed_admin):
    seed_admin("viewer-1", role="viewer")

    decision = policy.evaluate_write("opportunities", "opp-1", {"title": "Farm"}, caller="viewer-1")
    assert decision.kind == ErrorKind.MISSING_FIELD

    decision = policy.evaluate_write(
        "opportunities", "opp-1", {"title": "Farm", "createdBy": "viewer-2"}, caller="viewer-1"
    )
    assert decision.kind == ErrorKind.IDENTITY_MISMATCH

    decision = policy.evaluate_write(
        "opportunities", "opp-1", {"title": "Farm", "createdBy": "viewer-1"}, caller="viewer-1"
    )
    assert decision.allowed


def test_admin_audit_log_records_use_admin_id(policy, seed_admin):
    seed_admin("mgr-1", role="manager")

    decision = policy.evaluate_write("admin_audit_logs", "log-1", {"adminId": "mgr-1"}, caller="mgr-1")
    assert decision.allowed

    decision = policy.evaluate_write("admin_audit_logs", "log-2", {"adminId": "mgr-2"}, caller="mgr-1")
    assert decision.kind == ErrorKind.IDENTITY_MISMATCH


def test_admin_only_collection_rejects_non_admins(policy):
    decision = policy.evaluate_write(
        "opportunities", "opp-1", {"createdBy": "member-1"}, caller="member-1"
    )
    assert decision.kind == ErrorKind.NOT_FOUND
