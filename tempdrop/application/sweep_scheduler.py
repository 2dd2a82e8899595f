"""
Sweep Scheduler

In-process scheduler running reconciliation cycles on a fixed interval from a
background thread. Used when no Celery beat is deployed (SWEEPER_MODE=thread).
"""

import logging
import threading
from typing import Optional

from tempdrop.application.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Runs ReconciliationService.run_sweep every interval seconds.

    A single worker thread runs the cycles and waits a full interval after
    each one, so cycles started by one scheduler never overlap. The first
    cycle runs immediately on start.
    """

    def __init__(self, service: ReconciliationService, interval: float,
                 grace_period: float = 30.0):
        """
        Initialize SweepScheduler.

        Args:
            service: Reconciliation service to run
            interval: Seconds between cycles
            grace_period: Default seconds stop() waits for an in-flight cycle
        """
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.service = service
        self.interval = interval
        self.grace_period = grace_period
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Calling start twice is a no-op."""
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="sweep-scheduler", daemon=True
            )
            self._thread.start()
        logger.info(f"Sweep scheduler started, interval {self.interval}s")

    def stop(self, grace_period: Optional[float] = None) -> bool:
        """
        Stop scheduling and wait for an in-flight cycle.

        The stop signal also reaches the running cycle, which abandons work it
        has not started yet.

        Args:
            grace_period: Seconds to wait (default: the configured grace period)

        Returns:
            True if the thread finished within the grace period
        """
        self._stop_event.set()

        with self._lock:
            thread = self._thread

        if thread is None:
            return True

        thread.join(self.grace_period if grace_period is None else grace_period)
        stopped = not thread.is_alive()
        if stopped:
            logger.info("Sweep scheduler stopped")
        else:
            logger.warning("Sweep scheduler did not stop within the grace period")
        return stopped

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                result = self.service.run_sweep(stop_event=self._stop_event)
                logger.debug(f"Sweep finished: {result}")
            except Exception as e:
                logger.error(f"Sweep cycle crashed: {e}", exc_info=True)

            self._stop_event.wait(self.interval)
