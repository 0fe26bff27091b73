"""
Kitchen Rush Simulation Script

Fires a burst of concurrent orders at the kitchen API, then drives them
through assignment and the status lifecycle the way several kitchen
terminals would at once.
Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

MANAGER = {"X-User-Id": "manager-1", "X-User-Role": "manager"}
COOKS = [{"X-User-Id": f"cook-{n}", "X-User-Role": "staff"} for n in range(1, 4)]
LIFECYCLE = ["confirmed", "preparing", "ready", "delivered"]

# Sample data for random orders
GUEST_NAMES = ["Ana Silva", "Tom Becker", "Mei Chen", "Omar Haddad", "Lena Novak", "Raj Patel"]
ORDER_TYPES = ["dine-in", "takeaway", "room-service"]
MENU_ITEMS = [
    {"itemRef": "m-01", "name": "Club Sandwich", "unitPrice": 14.5},
    {"itemRef": "m-02", "name": "Caesar Salad", "unitPrice": 11.0},
    {"itemRef": "m-03", "name": "Margherita Pizza", "unitPrice": 16.0},
    {"itemRef": "m-04", "name": "Continental Breakfast", "unitPrice": 19.0},
    {"itemRef": "m-05", "name": "Fresh Orange Juice", "unitPrice": 5.5},
    {"itemRef": "m-06", "name": "Chocolate Fondant", "unitPrice": 8.0},
]


def generate_random_items() -> list[dict]:
    """Generate random order items."""
    items = []
    for _ in range(random.randint(1, 4)):
        item = random.choice(MENU_ITEMS).copy()
        item["quantity"] = random.randint(1, 3)
        items.append(item)
    return items


def generate_intake_payload(meal_plan: bool = False) -> dict[str, Any]:
    """Generate payload for POST /kitchen/orders."""
    payload: dict[str, Any] = {
        "items": generate_random_items(),
        "orderType": random.choice(ORDER_TYPES),
        "priority": random.choice([None, "high", "normal", "low"]),
        "customer": {
            "name": random.choice(GUEST_NAMES),
            "roomNumber": str(random.randint(101, 530)),
        },
    }
    if meal_plan:
        days_ahead = random.randint(0, 3)
        payload["isPartOfMealPlan"] = True
        payload["mealType"] = random.choice(["breakfast", "lunch", "dinner"])
        payload["scheduledDate"] = (
            datetime.now(timezone.utc) + timedelta(days=days_ahead, minutes=5)
        ).isoformat()
    return payload


# =============================================================================
# ORDER INTAKE
# =============================================================================

async def send_order(client: httpx.AsyncClient, order_num: int, meal_plan: bool) -> dict[str, Any]:
    """Register one order and time the round trip."""
    start_time = time.time()
    try:
        response = await client.post(
            f"{API_BASE_URL}/kitchen/orders",
            json=generate_intake_payload(meal_plan),
            headers=MANAGER,
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        if response.status_code == 201:
            data = response.json()["data"]
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["id"],
                "status": data["status"],
                "priority": data["priority"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# KITCHEN TERMINALS
# =============================================================================

async def work_order(client: httpx.AsyncClient, order_id: str, cook: dict[str, str]) -> Optional[str]:
    """Assign an order to a cook and walk it to delivered. Returns the failure, if any."""
    response = await client.put(
        f"{API_BASE_URL}/kitchen/orders/{order_id}/assign",
        json={"staffId": cook["X-User-Id"]},
        headers=MANAGER,
    )
    if response.status_code != 200:
        return f"assign: {response.text[:80]}"

    for target in LIFECYCLE:
        await asyncio.sleep(random.uniform(0.0, 0.2))
        response = await client.put(
            f"{API_BASE_URL}/kitchen/orders/{order_id}/status",
            json={"status": target},
            headers=cook,
        )
        if response.status_code != 200:
            return f"{target}: {response.text[:80]}"
    return None


async def run_simulation(num_orders: int = TOTAL_ORDERS, meal_plan_share: float = 0.2) -> dict[str, Any]:
    """
    Run the kitchen rush.

    Args:
        num_orders: Number of orders to place
        meal_plan_share: Fraction of orders placed as meal-plan orders
    """
    print("=" * 70)
    print("🔥 KITCHEN RUSH SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        print("\n🚀 Placing orders...\n")
        results = await asyncio.gather(*[
            send_order(client, i + 1, random.random() < meal_plan_share)
            for i in range(num_orders)
        ])

        workable = [r for r in results if r["success"] and r["status"] == "pending"]
        print(f"👩‍🍳 Working {len(workable)} pending orders across {len(COOKS)} terminals...\n")
        failures = await asyncio.gather(*[
            work_order(client, r["order_id"], COOKS[i % len(COOKS)])
            for i, r in enumerate(workable)
        ])

        stats = (await client.get(f"{API_BASE_URL}/kitchen/stats", headers=MANAGER)).json()

    total_time = round(time.time() - start_time, 2)
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    scheduled = [r for r in successful if r["status"] == "scheduled"]
    lifecycle_errors = [f for f in failures if f]

    print("=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Orders placed: {len(successful)}/{num_orders}")
    print(f"📅 Scheduled for later days: {len(scheduled)}")
    print(f"❌ Intake failures: {len(failed)}")
    print(f"⚠️  Lifecycle failures: {len(lifecycle_errors)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        urgent = len([r for r in successful if r["priority"] == "urgent"])
        print(f"\n📈 Intake average response: {avg_time}s")
        print(f"   Room-service (urgent) orders: {urgent}")

    print(f"\n🍳 Kitchen stats today: {stats.get('data')}")

    for error in (failed[:5] if failed else []):
        print(f"   Order #{error['order_num']}: {error.get('error')}")
    for error in lifecycle_errors[:5]:
        print(f"   {error}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Run: python scripts/verify.py")
    print("2. Watch a terminal: websocat 'ws://localhost:8001/kitchen/ws?userId=cook-1&role=staff'")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "lifecycle_failures": len(lifecycle_errors),
        "total_time": total_time,
    }


async def preflight() -> bool:
    """Check the API is reachable before the rush."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"❌ API unreachable: {e}")
            return False
    data = response.json()
    print(f"✅ Status: {data.get('status')} (store={data.get('store')}, publisher={data.get('publisher')})")
    return response.status_code == 200


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Kitchen Rush Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--meal-plans", type=float, default=0.2, help="Share of meal-plan orders")
    args = parser.parse_args()

    if not asyncio.run(preflight()):
        sys.exit(1)
    asyncio.run(run_simulation(args.orders, args.meal_plans))
