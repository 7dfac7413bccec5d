"""AdminGuard client implementation"""
import json
from typing import Any, Dict, List, Optional, Union

import requests

Document = Union[str, bytes, Dict[str, Any]]


def _document_text(doc: Optional[Document]) -> Optional[str]:
    """Documents travel as JSON text; dicts are serialized, bytes decoded."""
    if doc is None:
        return None
    if isinstance(doc, bytes):
        return doc.decode("utf-8")
    if isinstance(doc, dict):
        return json.dumps(doc)
    return doc


class AdminGuardClient:
    """Client used by the dispatch layer to ask AdminGuard for decisions.

    Every request carries the shared dispatch key in ``X-Dispatch-Key``.
    The end user's principal is passed per call as ``caller``; the service
    trusts the dispatch layer to have authenticated it.
    """

    def __init__(self, base_url: str, dispatch_key: str, timeout: float = 10.0):
        """
        Initialize AdminGuard client.

        Args:
            base_url:     Base URL of AdminGuard backend (e.g. ``http://localhost:8000``).
            dispatch_key: Shared dispatch key configured as ``DISPATCH_API_KEY`` on the backend.
            timeout:      Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.dispatch_key = dispatch_key
        self.timeout = timeout
        self.session = requests.Session()

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        """Make an authenticated HTTP request to the AdminGuard API.

        Raises:
            requests.HTTPError: On non-2xx responses.
        """
        url = f"{self.base_url}{endpoint}"
        headers = kwargs.pop("headers", {})
        headers["X-Dispatch-Key"] = self.dispatch_key
        kwargs.setdefault("timeout", self.timeout)

        response = self.session.request(method, url, headers=headers, **kwargs)
        response.raise_for_status()
        return response

    # ========== Evaluation ==========

    def evaluate_write(
        self,
        collection: str,
        key: str,
        proposed: Document,
        caller: str,
        current: Optional[Document] = None,
        now_ns: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Ask whether ``caller`` may store ``proposed`` under ``collection/key``.

        Args:
            collection: Target collection.
            key:        Target document key.
            proposed:   Proposed document (dict, JSON text or bytes).
            caller:     Authenticated principal performing the write.
            current:    Currently stored document, if any.
            now_ns:     Evaluation time in epoch nanoseconds (defaults to server time).

        Returns:
            Decision dict ``{allowed, kind, reason}``.
        """
        payload: Dict[str, Any] = {
            "collection": collection,
            "key": key,
            "proposed": _document_text(proposed),
            "current": _document_text(current),
            "caller": caller,
        }
        if now_ns is not None:
            payload["now_ns"] = now_ns
        response = self._request("POST", "/evaluate/write", json=payload)
        return response.json()

    def evaluate_delete(
        self,
        collection: str,
        key: str,
        caller: str,
        now_ns: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Ask whether ``caller`` may delete ``collection/key``."""
        payload: Dict[str, Any] = {"collection": collection, "key": key, "caller": caller}
        if now_ns is not None:
            payload["now_ns"] = now_ns
        response = self._request("POST", "/evaluate/delete", json=payload)
        return response.json()

    # ========== Audit Log ==========

    def log_admin_action(
        self,
        admin_id: str,
        action: str,
        target_collection: str,
        target_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Record an admin action in the audit chain.

        Raises:
            requests.HTTPError: 503 when the entry could not be written; the
                triggering operation must then be treated as failed.
        """
        response = self._request(
            "POST",
            "/audit",
            json={
                "admin_id": admin_id,
                "action": action,
                "target_collection": target_collection,
                "target_id": target_id,
                "metadata": metadata,
            },
        )
        return response.json()

    def query_audit_log(
        self,
        admin_id: Optional[str] = None,
        action: Optional[str] = None,
        target_collection: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Query audit entries, newest first."""
        params: Dict[str, Any] = {"limit": limit, "offset": offset}
        if admin_id:
            params["admin_id"] = admin_id
        if action:
            params["action"] = action
        if target_collection:
            params["target_collection"] = target_collection
        response = self._request("GET", "/audit", params=params)
        return response.json()

    def verify_audit_chain(self) -> Dict[str, Any]:
        """
        Verify the integrity of the admin audit chain.

        Returns:
            Dict with ``valid``, ``total_entries`` and ``broken_at``.
        """
        response = self._request("GET", "/audit/verify")
        return response.json()

    # ========== Admin Directory ==========

    def get_admin(self, user_id: str) -> Dict[str, Any]:
        """Look up an active admin profile (404 if absent, 403 if inactive)."""
        response = self._request("GET", f"/admins/{user_id}")
        return response.json()

    def check_bulk_operation(self, caller: str, operation: str, target_count: int) -> Dict[str, Any]:
        """
        Pre-check a bulk admin operation.

        Returns:
            Dict with ``allowed``, ``limit`` and, when denied, ``reason``.
        """
        response = self._request(
            "POST",
            "/admins/bulk-check",
            json={"caller": caller, "operation": operation, "target_count": target_count},
        )
        return response.json()

    # ========== Utility ==========

    def health_check(self) -> Dict[str, Any]:
        """Check backend health"""
        response = self.session.get(f"{self.base_url}/health", timeout=self.timeout)
        response.raise_for_status()
        return response.json()
