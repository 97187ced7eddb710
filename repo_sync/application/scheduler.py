"""Fixed-interval scheduler running one sync per tick."""

import logging
import threading
import time
from typing import Callable

from repo_sync.application.sync_service import SyncService

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs the sync on a fixed interval, never letting two ticks overlap."""

    SLEEP_SLICE_SECONDS = 0.2

    def __init__(
        self,
        sync_service: SyncService,
        username: str,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.sync_service = sync_service
        self.username = username
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._tick_lock = threading.Lock()
        self._stop = threading.Event()

    def request_stop(self):
        self._stop.set()

    def run_tick(self) -> bool:
        """
        Run one sync unless another tick is still in progress.

        Returns:
            True if the tick ran, False if it was skipped
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous sync is still running. Skipping this tick.")
            return False

        try:
            self.sync_service.run(self.username)
        except Exception as e:
            logger.error(f"Unexpected error during sync tick: {e}", exc_info=True)
        finally:
            self._tick_lock.release()
        return True

    def run_forever(self) -> int:
        """Run a tick now and then every interval until a stop is requested."""
        logger.info(f"Scheduling repository sync for {self.username} every {self.interval_seconds}s")
        next_tick = self._clock()

        while not self._stop.is_set():
            if self._clock() >= next_tick:
                self.run_tick()
                next_tick += self.interval_seconds
                # Skip ticks missed while a long sync was running
                while next_tick <= self._clock():
                    next_tick += self.interval_seconds
                continue

            self._sleep(max(0.0, min(self.SLEEP_SLICE_SECONDS, next_tick - self._clock())))

        logger.info("Scheduler stopped")
        return 0
