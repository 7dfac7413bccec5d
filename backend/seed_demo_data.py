"""
Demo Data Seeder for AdminGuard

Plays the role of the dispatch layer against a local database:
- bootstraps the first super admin
- creates a manager, an approver and a reviewer through the lifecycle guard
- approves one small and one high-value business application

Every write is evaluated first and only stored when the policy allows it,
so the admin audit chain ends up populated exactly as in production.

Run from the backend directory:
    python seed_demo_data.py
"""
import json
from typing import Any, Dict

from app.database import Base, SessionLocal, engine
from app.policy.engine import engine_for_session
from app.policy.store import SqlDocumentStore

SUPER_ADMIN = "uid-founder"

DEMO_ADMINS = [
    {"userId": "uid-ops-manager", "displayName": "Ops Manager", "role": "manager", "approvalLimit": 60_000_000},
    {"userId": "uid-credit-approver", "displayName": "Credit Approver", "role": "approver", "approvalLimit": 5_000_000},
    {"userId": "uid-analyst", "displayName": "Credit Analyst", "role": "reviewer", "approvalLimit": 0},
]

# Business-hours rule weekday 2 (Wednesday), 10:00 UTC
BUSINESS_HOURS_NS = 1_791_885_600 * 1_000_000_000


def dispatch(store: SqlDocumentStore, policy, collection: str, key: str, doc: Dict[str, Any], caller: str) -> bool:
    """Evaluate a proposed write and store it when allowed"""
    current = store.get(collection, key)
    decision = policy.evaluate_write(collection, key, json.dumps(doc), current, caller, BUSINESS_HOURS_NS)
    if decision.allowed:
        store.put(collection, key, doc)
        print(f"  ✓ {collection}/{key} written by {caller}")
    else:
        print(f"  ✗ {collection}/{key} denied ({decision.kind.value}): {decision.reason}")
    return decision.allowed


def main():
    print("\nSeeding demo data for AdminGuard...\n")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        store = SqlDocumentStore(db)
        policy = engine_for_session(db)

        print("Bootstrapping first super admin...")
        dispatch(store, policy, "admin_profiles", SUPER_ADMIN, {
            "userId": SUPER_ADMIN,
            "displayName": "Founder",
            "role": "super_admin",
            "approvalLimit": 1_000_000_000,
        }, SUPER_ADMIN)

        print("\nCreating admin team...")
        for admin in DEMO_ADMINS:
            dispatch(store, policy, "admin_profiles", admin["userId"], admin, SUPER_ADMIN)

        print("\nApproving applications...")
        dispatch(store, policy, "business_applications", "app-001", {
            "status": "approved",
            "requestedAmount": 2_500_000,
            "reviewedBy": "uid-analyst",
            "approvedBy": "uid-credit-approver",
        }, "uid-credit-approver")

        dispatch(store, policy, "business_applications", "app-002", {
            "status": "approved",
            "requestedAmount": 55_000_000,
            "reviewedBy": "uid-analyst",
            "approvedBy": "uid-ops-manager",
            "secondaryApprover": SUPER_ADMIN,
        }, "uid-ops-manager")

        print("\nAttempting a self-approval (expected to be denied)...")
        dispatch(store, policy, "business_applications", "app-003", {
            "status": "approved",
            "requestedAmount": 1_000_000,
            "reviewedBy": "uid-credit-approver",
            "approvedBy": "uid-credit-approver",
        }, "uid-credit-approver")
    finally:
        db.close()

    print("\n✅ Demo data seeded. Verify the audit chain at GET /audit/verify\n")


if __name__ == "__main__":
    main()
