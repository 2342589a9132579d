"""
Once-per-second tick driver.

Ticks run on a single worker thread so a slow tick never delays the clock.
A non-blocking lock guards against overlap: a tick that arrives while the
previous one is still running is dropped, not queued.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

TickHandler = Callable[[datetime], Any]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    """Fires ``tick`` once per interval with at-most-one-in-flight semantics."""

    def __init__(self, tick: TickHandler, clock: Clock = utc_now,
                 interval_seconds: float = 1.0) -> None:
        self.tick = tick
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.logger = logger

        self._guard = threading.Lock()
        self._stop = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tick")
        self.fired_ticks = 0
        self.dropped_ticks = 0

    @property
    def busy(self) -> bool:
        return self._guard.locked()

    def fire(self, now: Optional[datetime] = None) -> bool:
        """
        Dispatch one tick unless the previous tick is still running.

        Returns:
            True if the tick was dispatched, False if it was dropped
        """
        now = now or self.clock()
        if not self._guard.acquire(blocking=False):
            self.dropped_ticks += 1
            self.logger.debug("Tick dropped, previous evaluation still running",
                              tick=now.isoformat())
            return False

        try:
            self._executor.submit(self._run_tick, now)
        except RuntimeError:
            # Executor already shut down
            self._guard.release()
            return False

        self.fired_ticks += 1
        return True

    def _run_tick(self, now: datetime) -> None:
        try:
            self.tick(now)
        except Exception:
            self.logger.exception("Unhandled error during tick", tick=now.isoformat())
        finally:
            self._guard.release()

    def run(self) -> None:
        """Fire ticks aligned to interval boundaries until ``stop`` is called."""
        self.logger.info("Scheduler started", interval_seconds=self.interval_seconds)
        while not self._stop.is_set():
            delay = self.interval_seconds - (time.time() % self.interval_seconds)
            if self._stop.wait(delay):
                break
            self.fire()

        self._executor.shutdown(wait=True)
        self.logger.info(
            "Scheduler stopped",
            fired_ticks=self.fired_ticks,
            dropped_ticks=self.dropped_ticks,
        )

    def stop(self) -> None:
        """Request the run loop to exit after the in-flight tick finishes."""
        self._stop.set()
