"""Metrics collection for reconciliation passes."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock


# Module-level singleton state
_metrics_instance: "ReconcileMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class ReconcileMetrics:
    """Thread-safe counters for reconciliation passes, keyed by kind."""

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    passes: Counter[str] = field(default_factory=Counter)
    checks: Counter[str] = field(default_factory=Counter)
    matches: Counter[str] = field(default_factory=Counter)
    notifications: Counter[str] = field(default_factory=Counter)
    # (kind, outcome) pairs for checks that did not complete
    failures: Counter[tuple[str, str]] = field(default_factory=Counter)
    malformed_records: Counter[str] = field(default_factory=Counter)
    skipped_in_flight: Counter[str] = field(default_factory=Counter)

    @classmethod
    def get_instance(cls) -> "ReconcileMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared ReconcileMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_pass(self, kind: str, malformed: int, skipped: int) -> None:
        """Record a launched pass."""
        with self._lock:
            self.passes[kind] += 1
            self.malformed_records[kind] += malformed
            self.skipped_in_flight[kind] += skipped

    def record_check(self, kind: str, matched: bool) -> None:
        """Record a completed predicate check."""
        with self._lock:
            self.checks[kind] += 1
            if matched:
                self.matches[kind] += 1

    def record_notification(self, kind: str) -> None:
        """Record a notified and deleted item."""
        with self._lock:
            self.notifications[kind] += 1

    def record_failure(self, kind: str, outcome: str) -> None:
        """Record a check that failed.

        Args:
            kind: Action kind.
            outcome: Outcome name (CHECK_FAILED, NOTIFY_FAILED, ...).
        """
        with self._lock:
            self.failures[(kind, outcome)] += 1

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Convert metrics to a nested dictionary."""
        with self._lock:
            return {
                "passes": dict(self.passes),
                "checks": dict(self.checks),
                "matches": dict(self.matches),
                "notifications": dict(self.notifications),
                "failures": {f"{k}:{o}": n for (k, o), n in self.failures.items()},
                "malformed_records": dict(self.malformed_records),
                "skipped_in_flight": dict(self.skipped_in_flight),
            }
