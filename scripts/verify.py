"""
Status History Verification Script

Audits the kitchen queue: every order's status history must describe a
path allowed by the transition table and end at the order's current status.
Run from project root: python scripts/verify.py
"""

import argparse
import os
import sys
from datetime import datetime
from typing import Optional

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx

from hotel_kitchen.domain import StatusEntry
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.kitchen.state_machine import is_valid_path, reconstruct_path

API_BASE_URL = "http://localhost:8001"
HEADERS = {"X-User-Id": "auditor", "X-User-Role": "manager"}
# Queue views walked by the audit; the default view hides finished orders
AUDITED_VIEWS = ("all", "delivered", "cancelled")


def audit_order(order: dict) -> list[str]:
    """Return the problems found in one order's history."""
    history = [
        StatusEntry(
            status=OrderStatus(e["status"]),
            updated_by=e["updatedBy"],
            updated_at=datetime.fromisoformat(e["updatedAt"]),
            notes=e.get("notes"),
        )
        for e in order["statusHistory"]
    ]
    path = reconstruct_path(history)
    initial = OrderStatus.SCHEDULED if order["isPartOfMealPlan"] else OrderStatus.PENDING

    problems = []
    if not is_valid_path(path, initial=initial) and not is_valid_path(path):
        problems.append(f"illegal path {[s.value for s in path]}")
    if path and path[-1].value != order["status"]:
        problems.append(f"history ends at {path[-1].value} but status is {order['status']}")
    if order["assignedStaff"] and not any(
        (e.notes or "").startswith("Assigned to") for e in history
    ):
        problems.append("assignment without history entry")
    return problems


def fetch_orders(client: httpx.Client, status: str, pages: int) -> Optional[list[dict]]:
    """Read up to ``pages`` pages of one queue view; None when the API refuses."""
    orders = []
    for page in range(1, pages + 1):
        response = client.get(
            "/kitchen/orders",
            params={"status": status, "page": page, "limit": 100},
        )
        if response.status_code != 200:
            print(f"\n❌ Queue request failed ({status}): {response.text[:100]}")
            return None
        body = response.json()
        orders.extend(body["data"])
        if not body["pagination"]["hasNext"]:
            break
    return orders


def verify_history(statuses: tuple[str, ...] = AUDITED_VIEWS, pages: int = 10) -> bool:
    """Walk the given queue views and audit every order once."""
    print("=" * 60)
    print("🔍 STATUS HISTORY VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🎯 Target: {API_BASE_URL} (views: {', '.join(statuses)})")
    print("=" * 60)

    seen, broken = set(), {}
    with httpx.Client(base_url=API_BASE_URL, headers=HEADERS, timeout=30.0) as client:
        for status in statuses:
            orders = fetch_orders(client, status, pages)
            if orders is None:
                return False
            for order in orders:
                if order["id"] in seen:
                    continue
                seen.add(order["id"])
                problems = audit_order(order)
                if problems:
                    broken[order["id"]] = problems

    print(f"\n📊 Orders checked: {len(seen)}")
    if broken:
        print(f"⚠️ {len(broken)} orders with inconsistent history:")
        for order_id, problems in list(broken.items())[:10]:
            print(f"   {order_id}: {'; '.join(problems)}")
    else:
        print("✅ Every history follows the transition table")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)
    return not broken


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Status history audit")
    parser.add_argument(
        "--status",
        action="append",
        help="Queue view to audit (repeatable; default: all, delivered, cancelled)",
    )
    parser.add_argument("--pages", type=int, default=10, help="Maximum pages of 100 orders")
    args = parser.parse_args()
    views = tuple(args.status) if args.status else AUDITED_VIEWS
    sys.exit(0 if verify_history(views, args.pages) else 1)
