"""Scheduled reconciliation of tracked items."""

from stockwatch.reconcile.job import (
    AVAILABLE_TITLE,
    PRICE_TITLE,
    ReconciliationJob,
    build_message,
)
from stockwatch.reconcile.metrics import ReconcileMetrics
from stockwatch.reconcile.models import ItemOutcome, PassResult
from stockwatch.reconcile.scheduler import ReconciliationService
from stockwatch.reconcile.state_machine import (
    ItemState,
    ItemStateMachine,
    ItemStateTransitionError,
)


__all__ = [
    "AVAILABLE_TITLE",
    "PRICE_TITLE",
    "ItemOutcome",
    "ItemState",
    "ItemStateMachine",
    "ItemStateTransitionError",
    "PassResult",
    "ReconcileMetrics",
    "ReconciliationJob",
    "ReconciliationService",
    "build_message",
]
