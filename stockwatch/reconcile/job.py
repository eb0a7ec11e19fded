"""Reconciliation job: checks every tracked item of one kind."""

import threading
import time
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime

import httpx
import structlog

from stockwatch.messaging.errors import TransportError
from stockwatch.messaging.protocols import Messenger
from stockwatch.observability.logging import bind_pass_context, clear_pass_context
from stockwatch.reconcile.metrics import ReconcileMetrics
from stockwatch.reconcile.models import ItemOutcome, PassResult
from stockwatch.reconcile.state_machine import ItemStateMachine
from stockwatch.scraper.config import ScrapeConfig
from stockwatch.scraper.errors import ScrapeError
from stockwatch.scraper.scraper import Scraper
from stockwatch.settings.app import AppSettings
from stockwatch.store.errors import TrackingStoreError
from stockwatch.store.store import TrackingStore
from stockwatch.tracking.errors import MalformedRecordError
from stockwatch.tracking.models import ActionKind, TrackedItem, decode_record


logger = structlog.get_logger()

AVAILABLE_TITLE = "Product is available!"
PRICE_TITLE = "Product is below desired price!"

FatalHandler = Callable[[Exception], None]


def build_message(item: TrackedItem) -> tuple[str, str]:
    """Build the notification title and body for a matched item.

    Args:
        item: The matched item.

    Returns:
        Tuple of (title, body).
    """
    if item.kind == ActionKind.PRICE:
        return PRICE_TITLE, f"URL: {item.url}\nDesired price: {item.criterion}"
    return AVAILABLE_TITLE, f"URL: {item.url}"


class ReconciliationJob:
    """Runs reconciliation passes for one action kind.

    A pass loads every record of the kind's bucket, decodes it and
    submits one check per item to a bounded worker pool. Matched items
    are notified and then deleted; an item whose notification fails
    stays stored and is retried on the next pass.

    Items are guarded against concurrent checks across overlapping
    passes of the same job.
    """

    def __init__(  # noqa: PLR0913
        self,
        kind: ActionKind,
        store: TrackingStore,
        messenger: Messenger,
        settings: AppSettings,
        executor: ThreadPoolExecutor | None = None,
        sender: str = "",
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_fatal: FatalHandler | None = None,
    ) -> None:
        """Initialize the job.

        Args:
            kind: Action kind reconciled by this job.
            store: Tracking store.
            messenger: Notification dispatcher.
            settings: Application settings.
            executor: Worker pool; one sized by settings is created if None.
            sender: Sender identity; defaults to the settings sender.
            transport: Optional httpx transport for scrapers (used by tests).
            sleep: Function used by scrapers to wait between attempts.
            on_fatal: Called with the error when the store fails a delete.
        """
        self._kind = kind
        self._store = store
        self._messenger = messenger
        self._settings = settings
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_workers,
            thread_name_prefix=f"{kind.value}-check",
        )
        self._sender = sender or settings.sender
        self._transport = transport
        self._sleep = sleep
        self._on_fatal = on_fatal
        self._in_flight: set[tuple[str, str, str]] = set()
        self._in_flight_lock = threading.Lock()
        self._metrics = ReconcileMetrics.get_instance()
        self._log = logger.bind(component="reconcile", kind=kind.value)

    @property
    def kind(self) -> ActionKind:
        """Get the action kind."""
        return self._kind

    @property
    def in_flight_count(self) -> int:
        """Number of checks currently running."""
        with self._in_flight_lock:
            return len(self._in_flight)

    def run(self) -> PassResult:
        """Launch one reconciliation pass.

        Returns once every check is submitted; checks finish in the
        background.

        Returns:
            PassResult with the futures of the launched checks.

        Raises:
            StoreError: If the bucket cannot be read.
            MalformedRecordError: If a record is malformed and
                ``strict_records`` is enabled.
        """
        result = PassResult(
            pass_id=str(uuid.uuid4())[:8],
            kind=self._kind.value,
            started_at=datetime.now(UTC),
        )
        bind_pass_context(self._kind.value, result.pass_id)
        try:
            self._launch(result)
        finally:
            clear_pass_context()

        self._metrics.record_pass(
            self._kind.value, result.malformed, result.skipped_in_flight
        )
        return result

    def _launch(self, result: PassResult) -> None:
        records = self._store.get_all(self._kind.bucket)
        result.records_total = len(records)
        self._log.info("pass_started", pass_id=result.pass_id, records=len(records))

        for key, value in records.items():
            try:
                item = decode_record(self._kind, key, value)
            except MalformedRecordError as e:
                self._log.error("malformed_record", **e.to_dict())
                if self._settings.strict_records:
                    raise
                result.malformed += 1
                continue

            if not self._acquire(item):
                self._log.debug(
                    "check_already_in_flight", channel=item.channel, url=item.url
                )
                result.skipped_in_flight += 1
                continue

            scraper = self._build_scraper(item)
            try:
                future = self._executor.submit(self._check_item, item, scraper)
            except RuntimeError:
                self._release(item)
                raise
            future.add_done_callback(self._on_check_done)
            result.futures.append(future)

        self._log.info(
            "pass_launched",
            pass_id=result.pass_id,
            launched=result.launched,
            malformed=result.malformed,
            skipped_in_flight=result.skipped_in_flight,
        )

    def _build_scraper(self, item: TrackedItem) -> Scraper:
        settings = self._settings
        options: dict[str, object] = {}
        if item.kind == ActionKind.PRICE:
            options["target_price"] = item.target_price
        else:
            options["find_text"] = item.criterion

        config = ScrapeConfig(
            url=item.url,
            selector=item.selector,
            expected_status_code=settings.expected_status_code,
            max_retries=settings.max_retries,
            retry_seconds=settings.retry_seconds,
            timeout_seconds=settings.request_timeout_seconds,
            availability_mode=settings.availability_mode,
            **options,
        )
        return Scraper(
            config,
            transport=self._transport,
            sleep=self._sleep,
            log=self._log.bind(channel=item.channel),
        )

    def _check_item(self, item: TrackedItem, scraper: Scraper) -> ItemOutcome:
        """Check one item; runs on a worker thread.

        Raises:
            StoreError: If the matched item cannot be deleted.
        """
        log = self._log.bind(channel=item.channel, url=item.url)
        state = ItemStateMachine(item.key, self._kind.value)
        try:
            try:
                if item.kind == ActionKind.PRICE:
                    matched = scraper.is_price_below()
                else:
                    matched = scraper.is_available()
            except ScrapeError as e:
                log.error("check_failed", **e.to_dict())
                self._metrics.record_failure(
                    self._kind.value, ItemOutcome.CHECK_FAILED.value
                )
                return ItemOutcome.CHECK_FAILED

            self._metrics.record_check(self._kind.value, matched)
            if not matched:
                log.debug("condition_not_met")
                return ItemOutcome.NOT_MATCHED

            state.to_notifying()
            title, body = build_message(item)
            try:
                self._messenger.send_message(title, body, self._sender, item.channel)
            except TransportError as e:
                log.error(
                    "notify_failed",
                    transport=e.transport,
                    status_code=e.status_code,
                    error=str(e),
                )
                state.to_active()
                self._metrics.record_failure(
                    self._kind.value, ItemOutcome.NOTIFY_FAILED.value
                )
                return ItemOutcome.NOTIFY_FAILED

            self._store.delete(item.key, self._kind.bucket)
            state.to_deleted()
            self._metrics.record_notification(self._kind.value)
            log.info("item_notified")
            return ItemOutcome.NOTIFIED
        finally:
            self._release(item)

    def _on_check_done(self, future: "Future[ItemOutcome]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            return

        if isinstance(exc, TrackingStoreError):
            self._log.critical("store_failure", error=str(exc))
            if self._on_fatal is not None:
                self._on_fatal(exc)
            return

        self._log.error(
            "check_crashed", error_type=type(exc).__name__, error=str(exc)
        )

    def _item_id(self, item: TrackedItem) -> tuple[str, str, str]:
        return (item.kind.value, item.channel, item.url)

    def _acquire(self, item: TrackedItem) -> bool:
        item_id = self._item_id(item)
        with self._in_flight_lock:
            if item_id in self._in_flight:
                return False
            self._in_flight.add(item_id)
            return True

    def _release(self, item: TrackedItem) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(self._item_id(item))

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the worker pool if this job created it.

        Args:
            wait: Whether to wait for running checks to finish.
        """
        if self._owns_executor:
            self._executor.shutdown(wait=wait, cancel_futures=not wait)
