"""Tests for the approval policy and separation of duties"""
import json

import pytest
from prometheus_client import REGISTRY

from app.policy.errors import ErrorKind

APPS = "business_applications"


@pytest.fixture
def approver(seed_admin):
    return seed_admin("approver-1", role="approver", approval_limit=5_000_000)


@pytest.fixture
def big_approver(seed_admin):
    return seed_admin("manager-1", role="manager", approval_limit=100_000_000)


def test_non_approval_writes_pass_through(policy):
    """Test that only transitions to the approved status are inspected"""
    decision = policy.evaluate_write(APPS, "app-1", {"status": "under_review"}, caller="anyone")
    assert decision.allowed
    assert decision.kind is None

    decision = policy.evaluate_write("kyc_documents", "doc-1", {"whatever": 1}, caller="anyone")
    assert decision.allowed


def test_missing_status_on_gated_collection(policy):
    decision = policy.evaluate_write(APPS, "app-1", {"requestedAmount": 10}, caller="approver-1")
    assert not decision.allowed
    assert decision.kind == ErrorKind.MISSING_FIELD


def test_amount_within_limit_is_allowed(policy, approver, approval):
    for amount in (1, 4_999_999.99, 5_000_000):
        decision = policy.evaluate_write(APPS, "app-1", approval("approver-1", amount), caller="approver-1")
        assert decision.allowed, decision.reason


def test_amount_over_limit_is_denied(policy, approver, approval):
    decision = policy.evaluate_write(APPS, "app-1", approval("approver-1", 5_000_000.01), caller="approver-1")
    assert not decision.allowed
    assert decision.kind == ErrorKind.LIMIT_EXCEEDED
    assert "₦5,000,000.01" in decision.reason
    assert "₦5,000,000.00" in decision.reason
    assert "approver role" in decision.reason


@pytest.mark.parametrize("doc,kind", [
    ({"status": "approved", "approvedBy": "approver-1"}, ErrorKind.MISSING_FIELD),
    ({"status": "approved", "approvedBy": "approver-1", "requestedAmount": "1000"}, ErrorKind.MALFORMED_INPUT),
    ({"status": "approved", "approvedBy": "approver-1", "requestedAmount": -5}, ErrorKind.MALFORMED_INPUT),
])
def test_invalid_amount(policy, approver, doc, kind):
    decision = policy.evaluate_write(APPS, "app-1", doc, caller="approver-1")
    assert decision.kind == kind


def test_unknown_caller_is_denied(policy, approval):
    decision = policy.evaluate_write(APPS, "app-1", approval("ghost", 100), caller="ghost")
    assert decision.kind == ErrorKind.NOT_FOUND


def test_inactive_caller_is_denied(policy, seed_admin, approval):
    seed_admin("approver-2", role="approver", approval_limit=5_000_000, is_active=False)
    decision = policy.evaluate_write(APPS, "app-1", approval("approver-2", 100), caller="approver-2")
    assert decision.kind == ErrorKind.INACTIVE


def test_approved_by_must_match_caller(policy, approver, approval):
    decision = policy.evaluate_write(APPS, "app-1", approval("someone-else", 100), caller="approver-1")
    assert decision.kind == ErrorKind.IDENTITY_MISMATCH
    assert "someone-else" in decision.reason

    doc = {"status": "approved", "requestedAmount": 100}
    decision = policy.evaluate_write(APPS, "app-1", doc, caller="approver-1")
    assert decision.kind == ErrorKind.MISSING_FIELD


def test_high_value_on_weekend_is_denied(policy, big_approver, approval, saturday):
    decision = policy.evaluate_write(
        APPS, "app-1", approval("manager-1", 10_000_001), caller="manager-1", now_ns=saturday
    )
    assert decision.kind == ErrorKind.TIME_WINDOW_VIOLATION
    assert "weekends" in decision.reason


def test_high_value_after_hours_is_denied(policy, big_approver, approval, after_hours):
    decision = policy.evaluate_write(
        APPS, "app-1", approval("manager-1", 10_000_001), caller="manager-1", now_ns=after_hours
    )
    assert decision.kind == ErrorKind.TIME_WINDOW_VIOLATION
    assert "Current hour: 23:00" in decision.reason


def test_high_value_in_business_hours_is_allowed(policy, big_approver, approval, business_hours):
    decision = policy.evaluate_write(
        APPS, "app-1", approval("manager-1", 10_000_001), caller="manager-1", now_ns=business_hours
    )
    assert decision.allowed


def test_threshold_amount_is_time_unrestricted(policy, big_approver, approval, saturday):
    decision = policy.evaluate_write(
        APPS, "app-1", approval("manager-1", 10_000_000), caller="manager-1", now_ns=saturday
    )
    assert decision.allowed


def test_dual_authorization(policy, big_approver, approval):
    decision = policy.evaluate_write(APPS, "app-1", approval("manager-1", 50_000_001), caller="manager-1")
    assert decision.kind == ErrorKind.DUAL_AUTH_REQUIRED

    doc = approval("manager-1", 50_000_001, secondaryApprover="")
    assert policy.evaluate_write(APPS, "app-1", doc, caller="manager-1").kind == ErrorKind.DUAL_AUTH_REQUIRED

    doc = approval("manager-1", 50_000_001, secondaryApprover="manager-1")
    assert policy.evaluate_write(APPS, "app-1", doc, caller="manager-1").kind == ErrorKind.DUAL_AUTH_REQUIRED

    doc = approval("manager-1", 50_000_001, secondaryApprover="super-1")
    assert policy.evaluate_write(APPS, "app-1", doc, caller="manager-1").allowed


def test_ceiling_is_checked_before_identity(policy, approver, approval):
    """Test that the first failing step determines the denial"""
    decision = policy.evaluate_write(APPS, "app-1", approval("someone-else", 9_000_000), caller="approver-1")
    assert decision.kind == ErrorKind.LIMIT_EXCEEDED


# ---------------------------------------------------------------------------
# Separation of duties
# ---------------------------------------------------------------------------

def test_reviewer_cannot_approve_own_review(policy, seed_admin, approval):
    seed_admin("admin-7", role="approver", approval_limit=5_000_000)
    doc = approval("admin-7", 1000, reviewedBy="admin-7")

    decision = policy.evaluate_write(APPS, "app-1", doc, caller="admin-7")
    assert decision.kind == ErrorKind.SEPARATION_OF_DUTIES_VIOLATION


def test_distinct_reviewer_passes(policy, seed_admin, approval):
    seed_admin("admin-9", role="approver", approval_limit=5_000_000)
    doc = approval("admin-9", 1000, reviewedBy="admin-7")

    assert policy.evaluate_write(APPS, "app-1", doc, caller="admin-9").allowed


def test_reviewer_falls_back_to_stored_document(policy, seed_admin, approval):
    seed_admin("admin-7", role="approver", approval_limit=5_000_000)
    current = json.dumps({"status": "under_review", "reviewedBy": "admin-7"})

    decision = policy.evaluate_write(APPS, "app-1", approval("admin-7", 1000), current, caller="admin-7")
    assert decision.kind == ErrorKind.SEPARATION_OF_DUTIES_VIOLATION


# ---------------------------------------------------------------------------
# Engine behaviour
# ---------------------------------------------------------------------------

def test_identical_inputs_yield_identical_decisions(policy, approver, approval):
    doc = json.dumps(approval("approver-1", 6_000_000))
    first = policy.evaluate_write(APPS, "app-1", doc, caller="approver-1")
    second = policy.evaluate_write(APPS, "app-1", doc, caller="approver-1")
    assert first == second


def test_malformed_proposed_document(policy):
    decision = policy.evaluate_write(APPS, "app-1", b"\x00garbage", caller="approver-1")
    assert decision.kind == ErrorKind.MALFORMED_INPUT


def test_oversized_amount_is_malformed(policy, approver):
    doc = '{"status": "approved", "approvedBy": "approver-1", "requestedAmount": 1' + "0" * 400 + "}"
    decision = policy.evaluate_write(APPS, "app-1", doc, caller="approver-1")
    assert not decision.allowed
    assert decision.kind == ErrorKind.MALFORMED_INPUT


def test_deeply_nested_document_is_malformed(policy):
    doc = '{"status": "under_review", "x": ' + "[" * 100_000 + "]" * 100_000 + "}"
    decision = policy.evaluate_write("kyc_documents", "doc-1", doc, caller="anyone")
    assert decision.kind == ErrorKind.MALFORMED_INPUT


def test_empty_caller_is_denied(policy, approval):
    decision = policy.evaluate_write(APPS, "app-1", approval("", 100), caller="")
    assert decision.kind == ErrorKind.MALFORMED_INPUT


def test_security_denials_raise_alert(policy, approver, approval, monkeypatch):
    sent = []
    monkeypatch.setattr("app.policy.engine.send_webhook", lambda event, payload: sent.append((event, payload)))

    policy.evaluate_write(APPS, "app-1", approval("someone-else", 100), caller="approver-1")
    policy.evaluate_write(APPS, "app-2", approval("approver-1", 9_000_000), caller="approver-1")

    assert len(sent) == 1
    event, payload = sent[0]
    assert event == "policy.violation"
    assert payload["kind"] == "identity_mismatch"
    assert payload["caller"] == "approver-1"


def test_decision_metric_collection_label_is_bounded(policy):
    policy.evaluate_write("scratch-collection-1", "doc-1", {"a": 1}, caller="anyone")

    assert REGISTRY.get_sample_value(
        "adminguard_policy_decisions_total",
        {"collection": "scratch-collection-1", "operation": "write", "outcome": "allowed"},
    ) is None
    assert REGISTRY.get_sample_value(
        "adminguard_policy_decisions_total",
        {"collection": "other", "operation": "write", "outcome": "allowed"},
    ) >= 1
