"""
Background supervision of the storage backend.

A scheduled job pings the user store. While the store is failing, the
interval between checks doubles up to a ceiling and pooled connections are
dropped so the next check reconnects. Request handling never waits on this
job; it only sees the store working or a StorageError.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from gotrabandhus.core.errors import StorageError
from gotrabandhus.storage.base import UserStore
import logging

logger = logging.getLogger(__name__)

JOB_ID = "storage_health_check"


class StorageSupervisor:
    def __init__(
        self,
        store: UserStore,
        interval_seconds: int = 30,
        max_interval_seconds: int = 600,
        scheduler: BackgroundScheduler | None = None,
    ):
        self.store = store
        self.base_interval = interval_seconds
        self.max_interval = max(max_interval_seconds, interval_seconds)
        self.current_interval = interval_seconds
        self.consecutive_failures = 0
        self.available = True
        self.scheduler = scheduler or BackgroundScheduler()

    def check(self) -> bool:
        """Ping the store once and adjust the schedule; returns availability"""
        try:
            self.store.ping()
            if not self.available:
                # Schema creation may have been skipped while the store was down
                self.store.create_schema()
        except StorageError as e:
            self._record_failure(e)
            return False

        if not self.available:
            logger.info(f"Storage '{self.store.name}' is available again")
        self.available = True
        self.consecutive_failures = 0
        self._set_interval(self.base_interval)
        return True

    def mark_unavailable(self) -> None:
        """Record a failure seen outside the job, e.g. at startup"""
        self.available = False

    def _record_failure(self, error: StorageError) -> None:
        self.consecutive_failures += 1
        if self.available:
            logger.error(f"Storage '{self.store.name}' became unavailable: {error.__cause__ or error}")
        self.available = False

        self.store.reset_connections()

        backoff = self.base_interval * 2 ** self.consecutive_failures
        self._set_interval(min(backoff, self.max_interval))
        logger.warning(
            f"Storage check failed {self.consecutive_failures} time(s); "
            f"retrying in {self.current_interval}s")

    def _set_interval(self, seconds: int) -> None:
        if seconds == self.current_interval:
            return
        self.current_interval = seconds
        if self.scheduler.running and self.scheduler.get_job(JOB_ID):
            self.scheduler.reschedule_job(JOB_ID, trigger=IntervalTrigger(seconds=seconds))

    def start(self) -> None:
        """
        Start the background scheduler.

        This should be called when the FastAPI app starts.
        """
        if not self.scheduler.running:
            self.scheduler.add_job(
                self.check,
                trigger=IntervalTrigger(seconds=self.current_interval),
                id=JOB_ID,
                name="Storage health check",
                replace_existing=True
            )

            self.scheduler.start()
            logger.info(f"Storage supervisor started; checking every {self.current_interval}s")

    def stop(self) -> None:
        """
        Stop the background scheduler.

        This should be called when the FastAPI app shuts down.
        """
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Storage supervisor stopped.")
