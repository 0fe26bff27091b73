"""SQL compilation of queue criteria (no database needed)."""

from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql

from hotel_kitchen.models import KitchenOrder, OrderStatus
from hotel_kitchen.services.store.criteria import Contains, Eq, In, Not, Range, all_of, any_of
from hotel_kitchen.services.store.sql import compile_criterion, order_to_values, record_to_order
from tests.conftest import make_order


def sql(criterion) -> str:
    return str(compile_criterion(criterion).compile(dialect=postgresql.dialect()))


class TestCompileCriterion:

    def test_equality_is_null_safe(self):
        assert "IS NOT DISTINCT FROM" in sql(Eq("assigned_staff", "cook-1"))

    def test_membership_excludes_nulls(self):
        compiled = sql(In("kitchen_status", ("preparing",)))
        assert "kitchen_status IS NOT NULL" in compiled
        assert " IN " in compiled

    def test_negated_membership_keeps_rows_without_a_value(self):
        compiled = sql(Not(In("kitchen_status", ("delivered",))))
        assert compiled.startswith("NOT")
        assert "IS NOT NULL" in compiled

    def test_range_is_half_open(self):
        start = datetime(2026, 3, 10, tzinfo=timezone.utc)
        end = datetime(2026, 3, 11, tzinfo=timezone.utc)
        compiled = sql(Range("created_at", start, end))
        assert "created_at >=" in compiled
        assert "created_at <" in compiled

    def test_search_is_case_insensitive_over_every_field(self):
        compiled = sql(Contains(("customer_name", "room_number"), "ana"))
        assert compiled.count(" LIKE ") == 2
        assert "lower(coalesce(" in compiled

    def test_search_wildcards_are_matched_literally(self):
        compiled = compile_criterion(Contains(("room_number",), "4_2%")).compile(
            dialect=postgresql.dialect()
        )
        assert "ESCAPE '/'" in str(compiled)
        assert "4/_2/%" in compiled.params.values()

    def test_composition(self):
        compiled = sql(all_of(
            any_of(Eq("status", OrderStatus.PENDING), Eq("is_part_of_meal_plan", True)),
            Contains(("room_number",), "412"),
        ))
        assert " OR " in compiled
        assert " AND " in compiled


class TestRecordConversion:

    def test_row_values_become_a_domain_order(self):
        order = make_order(status=OrderStatus.CONFIRMED, assigned_staff="cook-1")
        record = KitchenOrder(**order_to_values(order))

        restored = record_to_order(record)

        assert restored.status == OrderStatus.CONFIRMED
        assert restored.assigned_staff == "cook-1"
        assert restored.customer.room_number == "412"
        assert restored.items[0].name == "Club Sandwich"
