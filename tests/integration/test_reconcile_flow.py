"""Integration tests for reconciliation against a real store."""

import tempfile
import threading
from collections.abc import Generator
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from stockwatch.messaging.errors import TransportError
from stockwatch.reconcile.job import ReconciliationJob
from stockwatch.reconcile.metrics import ReconcileMetrics
from stockwatch.reconcile.models import ItemOutcome
from stockwatch.reconcile.scheduler import ReconciliationService
from stockwatch.settings.app import AppSettings
from stockwatch.store.errors import StoreError
from stockwatch.store.metrics import StoreMetrics
from stockwatch.store.store import TrackingStore
from stockwatch.tracking.errors import MalformedRecordError
from stockwatch.tracking.intake import TrackRequest, register
from stockwatch.tracking.models import ActionKind


PAGES = {
    "/cheap": '<span id="priceblock_ourprice">15,99 €</span>',
    "/pricey": '<span id="priceblock_ourprice">£  995.10</span>',
    "/in-stock": '<div id="availability"> En stock. </div>',
    "/sold-out": '<div id="availability">Temporairement en rupture.</div>',
}


def shop(request: httpx.Request) -> httpx.Response:
    """Fake shop serving one product page per path."""
    fragment = PAGES.get(request.url.path)
    if fragment is None:
        return httpx.Response(404)
    return httpx.Response(200, text=f"<html><body>{fragment}</body></html>")


class RecordingMessenger:
    """Records sent messages."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []
        self._lock = threading.Lock()

    def send_message(self, title: str, body: str, sender: str, destination: str) -> None:
        with self._lock:
            self.sent.append((title, body, sender, destination))


@pytest.fixture
def store() -> Generator[TrackingStore]:
    """Create a connected store in a temporary directory."""
    StoreMetrics.reset()
    ReconcileMetrics.reset()
    with tempfile.TemporaryDirectory() as tmpdir:
        with TrackingStore(Path(tmpdir) / "items.db") as store:
            yield store


@pytest.fixture
def settings() -> AppSettings:
    """Create settings without retries."""
    return AppSettings(max_retries=0, max_workers=4, twilio_phone="+15550001111")


def make_job(
    kind: ActionKind,
    store: TrackingStore,
    messenger: RecordingMessenger,
    settings: AppSettings,
) -> ReconciliationJob:
    """Create a job scraping the fake shop."""
    return ReconciliationJob(
        kind,
        store,
        messenger,
        settings,
        transport=httpx.MockTransport(shop),
        sleep=lambda _: None,
    )


class TestPricePass:
    """End-to-end price reconciliation."""

    def test_only_matched_items_are_removed(
        self,
        store: TrackingStore,
        settings: AppSettings,
    ) -> None:
        """Test a price drop is notified once and the record deleted."""
        for path in ("/cheap", "/pricey"):
            register(
                store,
                TrackRequest(
                    channel="chan1",
                    url=f"http://shop.example{path}",
                    type=ActionKind.PRICE,
                    price="20",
                ),
                settings,
            )
        messenger = RecordingMessenger()
        job = make_job(ActionKind.PRICE, store, messenger, settings)

        try:
            outcomes = job.run().wait(timeout=10)
        finally:
            job.shutdown()

        assert sorted(outcomes) == sorted(
            [ItemOutcome.NOTIFIED, ItemOutcome.NOT_MATCHED]
        )
        assert messenger.sent == [
            (
                "Product is below desired price!",
                "URL: http://shop.example/cheap\nDesired price: 20",
                "+15550001111",
                "chan1",
            )
        ]
        assert store.get_all("price") == {
            "chan1|http://shop.example/pricey": "#priceblock_ourprice|20"
        }

    def test_second_pass_does_not_renotify(
        self,
        store: TrackingStore,
        settings: AppSettings,
    ) -> None:
        """Test a notified item is gone on the following pass."""
        store.save(
            "chan1|http://shop.example/cheap", "#priceblock_ourprice|20", "price"
        )
        messenger = RecordingMessenger()
        job = make_job(ActionKind.PRICE, store, messenger, settings)

        try:
            job.run().wait(timeout=10)
            second = job.run()
        finally:
            job.shutdown()

        assert second.launched == 0
        assert len(messenger.sent) == 1


class TestAvailabilityPass:
    """End-to-end availability reconciliation."""

    def test_available_item_notified(
        self,
        store: TrackingStore,
        settings: AppSettings,
    ) -> None:
        """Test an in-stock page notifies and removes only that record."""
        for channel, path in (("chan1", "/in-stock"), ("chan2", "/sold-out")):
            register(
                store,
                TrackRequest(
                    channel=channel,
                    url=f"http://shop.example{path}",
                    type=ActionKind.AVAILABILITY,
                ),
                settings,
            )
        messenger = RecordingMessenger()
        job = make_job(ActionKind.AVAILABILITY, store, messenger, settings)

        try:
            job.run().wait(timeout=10)
        finally:
            job.shutdown()

        assert messenger.sent == [
            (
                "Product is available!",
                "URL: http://shop.example/in-stock",
                "+15550001111",
                "chan1",
            )
        ]
        assert list(store.get_all("availability")) == [
            "chan2|http://shop.example/sold-out"
        ]

    def test_unreachable_page_kept(
        self,
        store: TrackingStore,
        settings: AppSettings,
    ) -> None:
        """Test a page that cannot be fetched stays tracked."""
        store.save(
            "chan1|http://shop.example/gone",
            "#availability|en stock.",
            "availability",
        )
        job = make_job(ActionKind.AVAILABILITY, store, RecordingMessenger(), settings)

        try:
            outcomes = job.run().wait(timeout=10)
        finally:
            job.shutdown()

        assert outcomes == [ItemOutcome.CHECK_FAILED]
        assert store.count("availability") == 1


class TestReconciliationService:
    """Tests for the scheduling service."""

    def test_schedules_one_job_per_kind(
        self,
        store: TrackingStore,
    ) -> None:
        """Test each kind is scheduled at its configured interval."""
        settings = AppSettings(price_interval="2h", availability_interval="30s")
        service = ReconciliationService(store, RecordingMessenger(), settings)

        service.start()
        try:
            scheduler = service._scheduler
            price_job = scheduler.get_job("price-reconcile")
            availability_job = scheduler.get_job("availability-reconcile")
            assert price_job.trigger.interval == timedelta(hours=2)
            assert availability_job.trigger.interval == timedelta(seconds=30)
        finally:
            service.stop(wait=False)

    def test_store_failure_stops_service(self, store: TrackingStore) -> None:
        """Test a failing store read stops the service with its error."""
        failing_store = MagicMock(spec=TrackingStore)
        failing_store.get_all.side_effect = StoreError("get_all", "disk I/O error")
        settings = AppSettings(availability_interval="50ms", price_interval="1h")
        service = ReconciliationService(failing_store, RecordingMessenger(), settings)

        with pytest.raises(StoreError):
            service.run_forever()

        assert isinstance(service.error, StoreError)

    def test_strict_malformed_record_stops_service(
        self, store: TrackingStore
    ) -> None:
        """Test strict mode turns a malformed record into a fatal error."""
        store.save("no-delimiter", "#availability|en stock.", "availability")
        settings = AppSettings(
            availability_interval="50ms",
            price_interval="1h",
            strict_records=True,
        )
        service = ReconciliationService(store, RecordingMessenger(), settings)

        with pytest.raises(MalformedRecordError):
            service.run_forever()


class FailingMessenger:
    """Messenger whose every delivery fails."""

    def __init__(self) -> None:
        self.calls = 0

    def send_message(self, title: str, body: str, sender: str, destination: str) -> None:
        self.calls += 1
        raise TransportError("delivery failed", "fake")


def selector_page(request: httpx.Request) -> httpx.Response:
    """Page with a price under a custom selector."""
    return httpx.Response(
        200, text='<html><body><b id="sel">45,00 €</b></body></html>'
    )


class TestDispatchThenDelete:
    """Notification and deletion ordering for one price record."""

    @pytest.fixture
    def seeded(self, store: TrackingStore) -> TrackingStore:
        """Store holding one price record below its page price."""
        store.save("chan1|http://x", "#sel|50.00", "price")
        return store

    def test_one_dispatch_then_delete(
        self, seeded: TrackingStore, settings: AppSettings
    ) -> None:
        """Test exactly one dispatch followed by deletion of the record."""
        messenger = RecordingMessenger()
        job = ReconciliationJob(
            ActionKind.PRICE,
            seeded,
            messenger,
            settings,
            transport=httpx.MockTransport(selector_page),
            sleep=lambda _: None,
        )

        try:
            outcomes = job.run().wait(timeout=10)
        finally:
            job.shutdown()

        assert outcomes == [ItemOutcome.NOTIFIED]
        assert len(messenger.sent) == 1
        assert messenger.sent[0][3] == "chan1"
        assert seeded.get("chan1|http://x", "price") == ""

    def test_failed_dispatch_keeps_record(
        self, seeded: TrackingStore, settings: AppSettings
    ) -> None:
        """Test the record survives a failed dispatch."""
        messenger = FailingMessenger()
        job = ReconciliationJob(
            ActionKind.PRICE,
            seeded,
            messenger,
            settings,
            transport=httpx.MockTransport(selector_page),
            sleep=lambda _: None,
        )

        try:
            outcomes = job.run().wait(timeout=10)
        finally:
            job.shutdown()

        assert outcomes == [ItemOutcome.NOTIFY_FAILED]
        assert messenger.calls == 1
        assert seeded.get("chan1|http://x", "price") == "#sel|50.00"
