"""State machine for a tracked item during a check."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class ItemState(str, Enum):
    """State of a tracked item within one check.

    - ACTIVE: Stored and eligible for checks
    - NOTIFYING: Match detected, notification in progress
    - DELETED: Notified and removed from the store
    """

    ACTIVE = "ACTIVE"
    NOTIFYING = "NOTIFYING"
    DELETED = "DELETED"


_VALID_TRANSITIONS: dict[ItemState, set[ItemState]] = {
    ItemState.ACTIVE: {ItemState.NOTIFYING},
    # Failed delivery returns the item to the active set
    ItemState.NOTIFYING: {ItemState.DELETED, ItemState.ACTIVE},
    ItemState.DELETED: set(),  # Terminal state
}


class ItemStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(self, item_key: str, from_state: ItemState, to_state: ItemState) -> None:
        """Initialize the transition error.

        Args:
            item_key: Store key of the item.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.item_key = item_key
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for item '{item_key}': "
            f"{from_state.value} -> {to_state.value}"
        )


class ItemStateMachine:
    """Tracks and validates the state of one item during a check."""

    def __init__(self, item_key: str, kind: str) -> None:
        """Initialize the state machine in ACTIVE state.

        Args:
            item_key: Store key of the item.
            kind: Action kind, for logging.
        """
        self._item_key = item_key
        self._state = ItemState.ACTIVE
        self._log = logger.bind(component="reconcile", kind=kind, key=item_key)

    @property
    def state(self) -> ItemState:
        """Get the current state."""
        return self._state

    def _transition(self, to_state: ItemState) -> None:
        if to_state not in _VALID_TRANSITIONS[self._state]:
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.value,
                to_state=to_state.value,
            )
            raise ItemStateTransitionError(self._item_key, self._state, to_state)

        self._log.debug(
            "item_state_transition",
            from_state=self._state.value,
            to_state=to_state.value,
        )
        self._state = to_state

    def to_notifying(self) -> None:
        """Mark that a match was detected."""
        self._transition(ItemState.NOTIFYING)

    def to_deleted(self) -> None:
        """Mark that the item was notified and removed."""
        self._transition(ItemState.DELETED)

    def to_active(self) -> None:
        """Return the item to the active set after a failed delivery."""
        self._transition(ItemState.ACTIVE)
