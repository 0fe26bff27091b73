"""Tests for the order state machine."""

import pytest

from hotel_kitchen.core.errors import InvalidTransition
from hotel_kitchen.domain import StatusEntry
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.kitchen.state_machine import (
    TRANSITIONS,
    allowed_targets,
    can_transition,
    is_terminal,
    is_valid_path,
    reconstruct_path,
    transition,
)
from tests.conftest import NOW, make_order


ALL = list(OrderStatus)


# ============== Transition table ==============

class TestTransitionTable:

    @pytest.mark.parametrize("current", ALL)
    @pytest.mark.parametrize("target", ALL)
    def test_result_is_target_if_allowed_else_unchanged(self, current, target):
        order = make_order(status=current)
        allowed = target in TRANSITIONS[current]

        if allowed:
            transition(order, target, "cook-1", now=NOW)
            assert order.status == target
            assert len(order.status_history) == 1
        else:
            with pytest.raises(InvalidTransition):
                transition(order, target, "cook-1", now=NOW)
            assert order.status == current
            assert order.status_history == []

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states_absorb_everything(self, terminal):
        assert is_terminal(terminal)
        assert allowed_targets(terminal) == frozenset()
        for target in ALL:
            assert not can_transition(terminal, target)

    def test_every_non_terminal_state_can_be_cancelled(self):
        for status in ALL:
            if not is_terminal(status):
                assert can_transition(status, OrderStatus.CANCELLED)

    def test_no_skip_ahead(self):
        assert not can_transition(OrderStatus.PENDING, OrderStatus.PREPARING)
        assert not can_transition(OrderStatus.CONFIRMED, OrderStatus.READY)
        assert not can_transition(OrderStatus.SCHEDULED, OrderStatus.CONFIRMED)

    def test_scheduled_orders_are_released_to_pending(self):
        assert allowed_targets(OrderStatus.SCHEDULED) == {
            OrderStatus.PENDING,
            OrderStatus.CANCELLED,
        }


# ============== Transition side effects ==============

class TestTransition:

    def test_history_entry_holds_new_status_actor_and_notes(self):
        order = make_order()
        entry = transition(order, OrderStatus.CONFIRMED, "cook-1", notes="table 4", now=NOW)

        assert entry.status == OrderStatus.CONFIRMED
        assert entry.updated_by == "cook-1"
        assert entry.updated_at == NOW
        assert entry.notes == "table 4"
        assert order.status_history == [entry]
        assert order.updated_by == "cook-1"

    def test_notes_are_optional(self):
        order = make_order()
        entry = transition(order, OrderStatus.CONFIRMED, "cook-1", now=NOW)
        assert entry.notes is None
        assert "notes" not in entry.to_dict()

    def test_rejection_names_both_statuses(self):
        order = make_order(status=OrderStatus.CONFIRMED)
        with pytest.raises(InvalidTransition) as exc_info:
            transition(order, OrderStatus.READY, "cook-1", now=NOW)

        error = exc_info.value
        assert error.current == "confirmed"
        assert error.requested == "ready"
        assert error.status_code == 409
        assert error.to_dict()["message"] == "Cannot change status from confirmed to ready"

    def test_string_targets_are_accepted(self):
        order = make_order()
        transition(order, "confirmed", "cook-1", now=NOW)
        assert order.status == OrderStatus.CONFIRMED


# ============== Audit helpers ==============

class TestPathReconstruction:

    def test_assignment_entries_collapse_into_one_step(self):
        order = make_order()
        transition(order, OrderStatus.CONFIRMED, "cook-1", now=NOW)
        order.status_history.append(StatusEntry(
            status=OrderStatus.CONFIRMED,
            updated_by="manager-1",
            updated_at=NOW,
            notes="Assigned to Chef Ana",
        ))
        transition(order, OrderStatus.PREPARING, "cook-1", now=NOW)

        path = reconstruct_path(order.status_history)
        assert path == [OrderStatus.CONFIRMED, OrderStatus.PREPARING]
        assert is_valid_path(path)

    def test_illegal_path_is_detected(self):
        assert not is_valid_path([OrderStatus.CONFIRMED, OrderStatus.READY])
        assert is_valid_path([OrderStatus.PENDING, OrderStatus.CONFIRMED], initial=OrderStatus.SCHEDULED)
