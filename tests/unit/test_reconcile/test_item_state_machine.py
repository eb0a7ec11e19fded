"""Unit tests for the item state machine."""

import pytest

from stockwatch.reconcile.state_machine import (
    ItemState,
    ItemStateMachine,
    ItemStateTransitionError,
)


class TestItemStateMachine:
    """Tests for ItemStateMachine."""

    def test_initial_state(self) -> None:
        """Test that a machine starts ACTIVE."""
        machine = ItemStateMachine("chan1|http://x", "price")
        assert machine.state == ItemState.ACTIVE

    def test_notify_then_delete(self) -> None:
        """Test the successful notification path."""
        machine = ItemStateMachine("chan1|http://x", "price")
        machine.to_notifying()
        machine.to_deleted()
        assert machine.state == ItemState.DELETED

    def test_failed_delivery_returns_to_active(self) -> None:
        """Test a failed delivery puts the item back in the active set."""
        machine = ItemStateMachine("chan1|http://x", "price")
        machine.to_notifying()
        machine.to_active()
        assert machine.state == ItemState.ACTIVE

    def test_delete_without_notification_rejected(self) -> None:
        """Test an item cannot be deleted before it was notified."""
        machine = ItemStateMachine("chan1|http://x", "price")

        with pytest.raises(ItemStateTransitionError) as exc_info:
            machine.to_deleted()

        assert exc_info.value.from_state == ItemState.ACTIVE
        assert exc_info.value.to_state == ItemState.DELETED
        assert machine.state == ItemState.ACTIVE

    def test_deleted_is_terminal(self) -> None:
        """Test no transition leaves DELETED."""
        machine = ItemStateMachine("chan1|http://x", "price")
        machine.to_notifying()
        machine.to_deleted()

        with pytest.raises(ItemStateTransitionError):
            machine.to_active()
        with pytest.raises(ItemStateTransitionError):
            machine.to_notifying()
