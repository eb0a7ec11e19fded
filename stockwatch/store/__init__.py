"""SQLite tracking store.

A bucketed key/value store: one bucket per action kind, keys are
"channel|url" and values "selector|criterion".
"""

from stockwatch.store.errors import (
    InvalidKeyError,
    MigrationError,
    StoreConnectionError,
    StoreError,
    TrackingStoreError,
)
from stockwatch.store.metrics import StoreMetrics
from stockwatch.store.store import TrackingStore


__all__ = [
    # Errors
    "InvalidKeyError",
    "MigrationError",
    "StoreConnectionError",
    "StoreError",
    "TrackingStoreError",
    # Metrics
    "StoreMetrics",
    # Store
    "TrackingStore",
]
