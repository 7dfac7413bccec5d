"""Tests for the AdminGuard SDK client"""
import json

import pytest
import requests

from adminguard import AdminGuardClient


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    def fake_request(self, method, url, headers=None, **kwargs):
        recorded.append({"method": method, "url": url, "headers": headers, **kwargs})
        return _FakeResponse({"allowed": True, "kind": None, "reason": None})

    monkeypatch.setattr(requests.Session, "request", fake_request)
    return recorded


def test_evaluate_write_serializes_documents(calls):
    guard = AdminGuardClient("http://guard:8000/", dispatch_key="k-1")
    decision = guard.evaluate_write(
        "business_applications",
        "app-1",
        proposed={"status": "approved"},
        caller="appr-1",
        current=b'{"status": "pending"}',
        now_ns=123,
    )

    assert decision["allowed"] is True
    call = calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://guard:8000/evaluate/write"
    assert call["headers"]["X-Dispatch-Key"] == "k-1"
    assert json.loads(call["json"]["proposed"]) == {"status": "approved"}
    assert call["json"]["current"] == '{"status": "pending"}'
    assert call["json"]["now_ns"] == 123


def test_query_audit_log_params(calls):
    guard = AdminGuardClient("http://guard:8000", dispatch_key="k-1")
    guard.query_audit_log(admin_id="super-1", limit=10)

    call = calls[0]
    assert call["url"] == "http://guard:8000/audit"
    assert call["params"] == {"limit": 10, "offset": 0, "admin_id": "super-1"}


def test_http_errors_propagate(monkeypatch):
    monkeypatch.setattr(
        requests.Session, "request",
        lambda self, method, url, headers=None, **kwargs: _FakeResponse({"detail": "x"}, 503),
    )
    guard = AdminGuardClient("http://guard:8000", dispatch_key="k-1")

    with pytest.raises(requests.HTTPError):
        guard.log_admin_action("super-1", "delete_admin", "admin_profiles", "mgr-1")
