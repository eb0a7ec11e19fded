"""Fixed-interval scheduling of the reconciliation jobs."""

import threading
from datetime import timedelta

import structlog
from apscheduler.schedulers.background import BackgroundScheduler

from stockwatch.messaging.protocols import Messenger
from stockwatch.reconcile.job import ReconciliationJob
from stockwatch.settings.app import AppSettings
from stockwatch.store.errors import TrackingStoreError
from stockwatch.store.store import TrackingStore
from stockwatch.tracking.errors import MalformedRecordError
from stockwatch.tracking.models import ActionKind


logger = structlog.get_logger()


class ReconciliationService:
    """Runs one reconciliation job per action kind on a fixed interval.

    A store failure, or a malformed record in strict mode, stops the
    service; ``run_forever`` then re-raises the error.
    """

    def __init__(
        self,
        store: TrackingStore,
        messenger: Messenger,
        settings: AppSettings,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Connected tracking store.
            messenger: Notification dispatcher.
            settings: Application settings.
            scheduler: Scheduler to use; a BackgroundScheduler if None.
        """
        self._settings = settings
        self._scheduler = scheduler or BackgroundScheduler(
            job_defaults={"coalesce": True, "max_instances": 1}
        )
        self._jobs = {
            kind: ReconciliationJob(
                kind, store, messenger, settings, on_fatal=self._fail
            )
            for kind in ActionKind
        }
        self._stopped = threading.Event()
        self._error: Exception | None = None
        self._log = logger.bind(component="service")

    @property
    def jobs(self) -> dict[ActionKind, ReconciliationJob]:
        """Get the jobs by kind."""
        return self._jobs

    @property
    def error(self) -> Exception | None:
        """Error that stopped the service, if any."""
        return self._error

    def interval(self, kind: ActionKind) -> timedelta:
        """Get the pass interval for a kind."""
        if kind == ActionKind.PRICE:
            return self._settings.price_interval
        return self._settings.availability_interval

    def start(self) -> None:
        """Register one interval job per kind and start the scheduler."""
        for kind, job in self._jobs.items():
            interval = self.interval(kind)
            self._scheduler.add_job(
                self._run_pass,
                "interval",
                args=[job],
                seconds=interval.total_seconds(),
                id=f"{kind.value}-reconcile",
                replace_existing=True,
            )
            self._log.info(
                "job_scheduled",
                kind=kind.value,
                interval_seconds=interval.total_seconds(),
            )
        self._scheduler.start()
        self._log.info("service_started")

    def _run_pass(self, job: ReconciliationJob) -> None:
        try:
            job.run()
        except (TrackingStoreError, MalformedRecordError) as e:
            self._log.critical(
                "pass_failed",
                kind=job.kind.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            self._fail(e)

    def _fail(self, error: Exception) -> None:
        if self._error is None:
            self._error = error
        self._stopped.set()

    def run_forever(self) -> None:
        """Start the service and block until it is stopped.

        Raises:
            Exception: The error that stopped the service, if any.
        """
        self.start()
        try:
            self._stopped.wait()
        except KeyboardInterrupt:
            self._log.info("shutdown_signal_received")
        finally:
            self.stop()

        if self._error is not None:
            raise self._error

    def stop(self, wait: bool = True) -> None:
        """Stop scheduling passes and shut down the worker pools.

        Args:
            wait: Whether to wait for running checks to finish.
        """
        self._stopped.set()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        for job in self._jobs.values():
            job.shutdown(wait=wait)
        self._log.info("service_stopped")
