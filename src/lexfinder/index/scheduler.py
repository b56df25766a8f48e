"""Periodic and on-demand scan scheduling."""

from __future__ import annotations

import enum
import logging
import threading

from lexfinder.config import DEFAULT_SCAN_INTERVAL
from lexfinder.errors import LexFinderError, ScanCancelledError
from lexfinder.index.indexer import Indexer, ScanStats

LOGGER = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ScanLoopThread(threading.Thread):
    """Thread that scans once immediately and then on every interval."""

    def __init__(self, scheduler: "IndexScheduler") -> None:
        super().__init__(name="lexfinder-scan", daemon=True)
        self.scheduler = scheduler

    def run(self) -> None:
        stop_event = self.scheduler.stop_event
        self.scheduler.tick()
        while not stop_event.wait(self.scheduler.interval):
            self.scheduler.tick()


class IndexScheduler:
    """Owns the single background scan loop of an :class:`Indexer`.

    ``start`` moves Idle -> Running exactly once; later calls are no-ops.
    ``stop`` moves to Stopped and cancels an in-flight background scan after
    its current file. ``reindex`` runs a scan on the caller's thread; the
    indexer's scan lock keeps it from overlapping the background pass.
    """

    def __init__(
        self,
        indexer: Indexer,
        *,
        interval: float = DEFAULT_SCAN_INTERVAL,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.indexer = indexer
        self.interval = interval
        self.logger = logger or LOGGER
        self.stop_event = threading.Event()
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._thread: ScanLoopThread | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def start(self) -> bool:
        """Start the background loop. Returns False if it was already started."""
        with self._state_lock:
            if self._state is not SchedulerState.IDLE:
                return False
            self._state = SchedulerState.RUNNING
            self._thread = ScanLoopThread(self)
            self._thread.start()
        self.logger.info("Index scheduler started (interval %.1fs)", self.interval)
        return True

    def stop(self, timeout: float | None = None) -> None:
        with self._state_lock:
            if self._state is SchedulerState.STOPPED:
                return
            self._state = SchedulerState.STOPPED
            self.stop_event.set()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self.logger.info("Index scheduler stopped")

    def tick(self) -> ScanStats | None:
        """Run one scheduled scan, logging failures instead of raising them."""
        try:
            return self.indexer.scan_once(cancel_event=self.stop_event)
        except ScanCancelledError:
            self.logger.debug("Scheduled scan cancelled")
        except LexFinderError as exc:
            self.logger.warning("Index scan failed: %s", exc)
        except Exception:  # pragma: no cover
            self.logger.exception("Unexpected error during scheduled scan")
        return None

    def reindex(self, cancel_event: threading.Event | None = None) -> ScanStats:
        """Scan synchronously on the caller's thread and propagate any failure."""
        return self.indexer.scan_once(cancel_event=cancel_event)
