"""Dispatch entry points.

The dispatch layer calls :meth:`PolicyEngine.evaluate_write` or
:meth:`PolicyEngine.evaluate_delete` once per proposed change. Evaluators
raise :class:`PolicyViolation` to deny; the engine turns that into a
:class:`Decision`, logs it, counts it and raises a security alert where the
denial kind calls for one. Nothing escapes as an exception except genuine
programming errors.
"""
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.middleware.monitoring import record_decision_metric
from app.policy.approval import check_separation_of_duties, evaluate_approval
from app.policy.audit import AuditSink, SqlAuditSink
from app.policy.directory import AdminDirectory
from app.policy.documents import RawDocument, decode_document
from app.policy.errors import SECURITY_ALERT_KINDS, Decision, MalformedInput, PolicyViolation
from app.policy.lifecycle import evaluate_admin_delete, evaluate_admin_profile_write, is_admin_directory
from app.policy.operations import (
    evaluate_admin_only_write,
    evaluate_profit_distribution,
    is_admin_only,
    is_profit_distribution,
)
from app.policy.store import DocumentStore, SqlDocumentStore
from app.policy.time_window import now_ns as default_clock
from app.utils.logger import logger
from app.utils.webhook import POLICY_VIOLATION_EVENT, send_webhook


class PolicyEngine:
    """Evaluates proposed writes and deletes against the admin policy."""

    def __init__(
        self,
        store: DocumentStore,
        sink: AuditSink,
        clock: Callable[[], int] = default_clock,
    ):
        self.directory = AdminDirectory(store)
        self.sink = sink
        self.clock = clock

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def evaluate_write(
        self,
        collection: str,
        key: str,
        proposed: RawDocument,
        current: RawDocument = None,
        caller: str = "",
        now_ns: Optional[int] = None,
    ) -> Decision:
        """Decide whether ``caller`` may store ``proposed`` under ``collection/key``.

        Args:
            collection: Target collection.
            key:        Target document key.
            proposed:   Proposed document (JSON bytes, text or an already decoded dict).
            current:    Currently stored document, if any.
            caller:     Authenticated principal asserted by the hosting environment.
            now_ns:     Evaluation time in epoch nanoseconds; defaults to the engine clock.

        Returns:
            Decision with ``allowed`` set, or the denial kind and reason.
        """
        try:
            self._check_write(collection, key, proposed, current, caller, now_ns)
        except PolicyViolation as violation:
            return self._deny("write", collection, key, caller, violation)
        return self._allow("write", collection, key, caller)

    def evaluate_delete(
        self,
        collection: str,
        key: str,
        caller: str = "",
        now_ns: Optional[int] = None,
    ) -> Decision:
        """Decide whether ``caller`` may delete ``collection/key``.

        Only admin profiles are guarded; deletes elsewhere are left to the
        storage layer's own rules.
        """
        try:
            self._require_caller(caller)
            if is_admin_directory(collection):
                evaluate_admin_delete(self.directory, self.sink, key, caller, self._now(now_ns))
        except PolicyViolation as violation:
            return self._deny("delete", collection, key, caller, violation)
        return self._allow("delete", collection, key, caller)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self, now_ns: Optional[int]) -> int:
        return self.clock() if now_ns is None else now_ns

    @staticmethod
    def _require_caller(caller: str) -> None:
        if not caller or not isinstance(caller, str):
            raise MalformedInput("Missing caller principal")

    def _check_write(
        self,
        collection: str,
        key: str,
        proposed: RawDocument,
        current: RawDocument,
        caller: str,
        now_ns: Optional[int],
    ) -> None:
        self._require_caller(caller)
        now = self._now(now_ns)

        proposed_doc = decode_document(proposed, label="proposed document")
        current_doc: Optional[Dict[str, Any]] = None
        if current is not None:
            current_doc = decode_document(current, label="current document")

        # Fixed order; the first violation wins.
        evaluate_approval(self.directory, collection, proposed_doc, caller, now)
        check_separation_of_duties(collection, proposed_doc, current_doc)

        if is_admin_only(collection):
            evaluate_admin_only_write(self.directory, collection, proposed_doc, caller)

        if is_admin_directory(collection):
            evaluate_admin_profile_write(self.directory, self.sink, key, proposed_doc, caller, now)

        if is_profit_distribution(collection):
            evaluate_profit_distribution(
                self.directory, self.sink, collection, key, proposed_doc, caller, now
            )

    def _allow(self, operation: str, collection: str, key: str, caller: str) -> Decision:
        record_decision_metric(collection, operation, "allowed")
        logger.info(
            f"Policy decision: allow {operation} on {collection}/{key}",
            extra={
                "caller": caller,
                "collection": collection,
                "key": key,
                "operation": operation,
                "allowed": True,
            },
        )
        return Decision.allow()

    def _deny(
        self,
        operation: str,
        collection: str,
        key: str,
        caller: str,
        violation: PolicyViolation,
    ) -> Decision:
        record_decision_metric(collection, operation, violation.kind.value)
        logger.warning(
            f"Policy decision: deny {operation} on {collection}/{key}: {violation.reason}",
            extra={
                "caller": caller,
                "collection": collection,
                "key": key,
                "operation": operation,
                "allowed": False,
                "kind": violation.kind.value,
            },
        )

        if violation.kind in SECURITY_ALERT_KINDS:
            send_webhook(POLICY_VIOLATION_EVENT, {
                "caller": caller,
                "collection": collection,
                "key": key,
                "operation": operation,
                "kind": violation.kind.value,
                "reason": violation.reason,
            })

        return Decision.deny(violation)


def engine_for_session(db: Session, clock: Callable[[], int] = default_clock) -> PolicyEngine:
    """Engine reading the directory from, and auditing into, the given database session."""
    return PolicyEngine(SqlDocumentStore(db), SqlAuditSink(db), clock=clock)


# Module-level entry points for callers that hold a session rather than an engine.

def evaluate_write(
    db: Session,
    collection: str,
    key: str,
    proposed: RawDocument,
    current: RawDocument,
    caller: str,
    now_ns: Optional[int] = None,
) -> Decision:
    return engine_for_session(db).evaluate_write(collection, key, proposed, current, caller, now_ns)


def evaluate_delete(db: Session, collection: str, key: str, caller: str, now_ns: Optional[int] = None) -> Decision:
    return engine_for_session(db).evaluate_delete(collection, key, caller, now_ns)
