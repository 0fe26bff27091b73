"""Tests for the status history audit script against the running app."""

from scripts.verify import AUDITED_VIEWS, audit_order, fetch_orders
from tests.conftest import MANAGER
from tests.test_api import place_order, put_status


def collect(client) -> dict[str, dict]:
    orders = {}
    for status in AUDITED_VIEWS:
        for order in fetch_orders(client, status, pages=5):
            orders[order["id"]] = order
    return orders


class TestHistoryAudit:

    def test_finished_orders_are_audited(self, client):
        active = place_order(client)["id"]
        delivered = place_order(client)["id"]
        for status in ("confirmed", "preparing", "ready", "delivered"):
            put_status(client, delivered, status)
        cancelled = place_order(client)["id"]
        client.post(f"/kitchen/orders/{cancelled}/cancel", json={}, headers=MANAGER)

        client.headers.update(MANAGER)
        orders = collect(client)

        assert set(orders) == {active, delivered, cancelled}
        assert all(audit_order(order) == [] for order in orders.values())

    def test_truncated_history_is_reported(self, client):
        order_id = place_order(client)["id"]
        for status in ("confirmed", "preparing", "ready", "delivered"):
            put_status(client, order_id, status)

        client.headers.update(MANAGER)
        [order] = fetch_orders(client, "delivered", pages=1)
        order["statusHistory"] = order["statusHistory"][2:]

        problems = audit_order(order)
        assert any(p.startswith("illegal path") for p in problems)

    def test_refused_view_returns_none(self, client):
        assert fetch_orders(client, "delivered", pages=1) is None
