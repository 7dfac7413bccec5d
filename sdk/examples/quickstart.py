"""AdminGuard quickstart example

Assumes the backend was seeded with ``backend/seed_demo_data.py``. Shows:
1. Looking up an admin
2. Evaluating an approval within and above the approver's limit
3. Pre-checking a bulk operation
4. Verifying the audit chain
"""
import os

from adminguard import AdminGuardClient

# Configuration
BACKEND_URL = os.getenv("ADMINGUARD_URL", "http://localhost:8000")
DISPATCH_KEY = os.getenv("DISPATCH_API_KEY", "dispatch-secret-key-change-in-production")


def main():
    print("=" * 60)
    print("AdminGuard Quickstart Demo")
    print("=" * 60)
    print()

    guard = AdminGuardClient(base_url=BACKEND_URL, dispatch_key=DISPATCH_KEY)

    print("1. Looking up approver...")
    approver = guard.get_admin("uid-credit-approver")
    print(f"   ✓ {approver['display_name']} ({approver['role']}), limit {approver['approval_limit']:,.2f}")
    print()

    print("2. Evaluating approvals...")
    for amount in (1_000_000, 7_500_000):
        decision = guard.evaluate_write(
            collection="business_applications",
            key=f"app-quickstart-{amount}",
            proposed={
                "status": "approved",
                "requestedAmount": amount,
                "reviewedBy": "uid-analyst",
                "approvedBy": "uid-credit-approver",
            },
            caller="uid-credit-approver",
        )
        verdict = "ALLOWED" if decision["allowed"] else f"DENIED ({decision['kind']})"
        print(f"   {amount:>12,}  {verdict}")
        if decision["reason"]:
            print(f"                 {decision['reason']}")
    print()

    print("3. Pre-checking a bulk deactivation of 12 accounts...")
    check = guard.check_bulk_operation("uid-founder", "deactivate", 12)
    print(f"   allowed={check['allowed']} limit={check['limit']}")
    print()

    print("4. Verifying audit chain...")
    chain = guard.verify_audit_chain()
    print(f"   valid={chain['valid']} entries={chain['total_entries']}")


if __name__ == "__main__":
    main()
