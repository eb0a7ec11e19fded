"""Result models for reconciliation passes."""

from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ItemOutcome(str, Enum):
    """Outcome of checking one tracked item.

    - NOTIFIED: Matched, notified and deleted
    - NOT_MATCHED: Checked, condition not met
    - CHECK_FAILED: Fetch or parse failed; retried next pass
    - NOTIFY_FAILED: Matched but delivery failed; kept for next pass
    """

    NOTIFIED = "NOTIFIED"
    NOT_MATCHED = "NOT_MATCHED"
    CHECK_FAILED = "CHECK_FAILED"
    NOTIFY_FAILED = "NOTIFY_FAILED"


@dataclass
class PassResult:
    """Result of launching one reconciliation pass.

    A pass returns as soon as every check is submitted; ``futures``
    completes with one ItemOutcome per launched check.
    """

    pass_id: str
    kind: str
    started_at: datetime
    records_total: int = 0
    malformed: int = 0
    skipped_in_flight: int = 0
    futures: list["Future[ItemOutcome]"] = field(default_factory=list)

    @property
    def launched(self) -> int:
        """Number of checks submitted."""
        return len(self.futures)

    def wait(self, timeout: float | None = None) -> list[ItemOutcome]:
        """Block until every launched check finishes.

        Args:
            timeout: Maximum seconds to wait.

        Returns:
            Outcomes of the checks that completed without raising.
        """
        done, _ = wait(self.futures, timeout=timeout)
        return [f.result() for f in done if f.exception() is None]
