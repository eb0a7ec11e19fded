"""Metrics collection for the tracking store."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import ClassVar


@dataclass
class StoreMetrics:
    """Per-operation counters for the tracking store.

    ``operations`` counts committed transactions by operation name
    (save, get, get_all, delete, ...). ``changes`` counts the subset of
    saves and deletes that touched a row.
    """

    operations: Counter[str] = field(default_factory=Counter)
    changes: Counter[str] = field(default_factory=Counter)
    failures: Counter[str] = field(default_factory=Counter)
    duration_ms: Counter[str] = field(default_factory=Counter)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    _instance: ClassVar["StoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "StoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_commit(self, operation: str, duration_ms: float, affected_rows: int) -> None:
        """Record a committed transaction.

        Args:
            operation: Operation name.
            duration_ms: Transaction duration in milliseconds.
            affected_rows: Rows changed by the transaction.
        """
        with self._lock:
            self.operations[operation] += 1
            self.duration_ms[operation] += duration_ms
            if affected_rows > 0:
                self.changes[operation] += 1

    def record_failure(self, operation: str) -> None:
        """Record a rolled back transaction."""
        with self._lock:
            self.failures[operation] += 1

    def to_dict(self) -> dict[str, dict[str, float]]:
        """Snapshot of all counters keyed by metric name."""
        with self._lock:
            return {
                "operations": dict(self.operations),
                "changes": dict(self.changes),
                "failures": dict(self.failures),
                "duration_ms": dict(self.duration_ms),
            }


@dataclass
class TransactionContext:
    """Bookkeeping for one open transaction."""

    tx_id: str
    start_time_ns: int
    operation: str
    affected_rows: int = 0

    def add_affected_rows(self, rows: int) -> None:
        """Add to the affected row count."""
        self.affected_rows += rows
