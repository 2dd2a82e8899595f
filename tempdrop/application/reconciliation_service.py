"""
Reconciliation Service

Application service wrapping a reconciliation cycle with a non-overlap guard,
event publication and a serializable result.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Optional

from redis.exceptions import LockError, RedisError

from tempdrop.application.event_publisher import EventPublisher
from tempdrop.domain.errors import CycleInProgressError, PartialListingError, TransientStoreError
from tempdrop.domain.events import (
    OrphanObjectDeletedEvent,
    ReconciliationAbortedEvent,
    ReconciliationCompletedEvent,
    ReconciliationSkippedEvent,
)
from tempdrop.domain.reconciliation.services import OrphanReconciler
from tempdrop.infrastructure.redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class LocalCycleGuard:
    """Non-overlap guard for a single process."""

    name = "local"

    def __init__(self):
        self._lock = threading.Lock()

    @contextmanager
    def hold(self) -> Iterator[threading.Event]:
        """
        Hold the guard for the duration of a cycle.

        Yields:
            Event set if the guard is lost mid-cycle (never, for this guard)

        Raises:
            CycleInProgressError: If a cycle is already running in this process
        """
        if not self._lock.acquire(blocking=False):
            raise CycleInProgressError(self.name)
        try:
            yield threading.Event()
        finally:
            self._lock.release()


class RedisCycleGuard:
    """
    Non-overlap guard shared by every worker connected to the same Redis.

    The lock frees itself after timeout seconds, so a crashed worker cannot
    block sweeps forever. While a cycle runs, a keep-alive thread resets the
    lock TTL every timeout / 3 seconds. If a reset fails, the lost event is set
    and the cycle abandons its remaining work before another worker can start
    an overlapping one.
    """

    def __init__(self, redis_repository: RedisRepository,
                 lock_name: str = "reconcile_orphaned_objects", timeout: float = 300):
        self.redis_repo = redis_repository
        self.name = lock_name
        self.timeout = timeout
        self.renew_interval = timeout / 3

    @contextmanager
    def hold(self) -> Iterator[threading.Event]:
        """
        Hold the distributed lock for the duration of a cycle.

        Yields:
            Event set once the lock could not be renewed

        Raises:
            CycleInProgressError: If another worker holds the lock
            TransientStoreError: If Redis cannot be reached
        """
        try:
            with self.redis_repo.distributed_lock(self.name, timeout=self.timeout) as lock:
                with self._kept_alive(lock) as lost:
                    yield lost
        except LockError as e:
            raise CycleInProgressError(self.name) from e

    @contextmanager
    def _kept_alive(self, lock) -> Iterator[threading.Event]:
        done = threading.Event()
        lost = threading.Event()
        keeper = threading.Thread(
            target=self._keep_alive,
            args=(lock, done, lost),
            name=f"{self.name}-keep-alive",
            daemon=True,
        )
        keeper.start()
        try:
            yield lost
        finally:
            done.set()
            keeper.join()

    def _keep_alive(self, lock, done: threading.Event, lost: threading.Event) -> None:
        while not done.wait(self.renew_interval):
            try:
                lock.reacquire()
            except (LockError, RedisError) as e:
                logger.error(f"Lost reconciliation lock {self.name}, abandoning cycle: {e}")
                lost.set()
                return


class _CycleStop:
    """Stop signal for one cycle: set on shutdown or when the guard is lost."""

    def __init__(self, *events: Optional[threading.Event]):
        self._events = [event for event in events if event is not None]

    def is_set(self) -> bool:
        return any(event.is_set() for event in self._events)


class ReconciliationService:
    """
    Runs guarded reconciliation cycles.

    run_sweep never raises on store errors: an aborted, skipped or partially
    failed cycle is reported in the result and retried on the next interval.
    """

    def __init__(
        self,
        reconciler: OrphanReconciler,
        guard=None,
        event_publisher: Optional[EventPublisher] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize ReconciliationService.

        Args:
            reconciler: Domain service running a single cycle
            guard: LocalCycleGuard or RedisCycleGuard (default: LocalCycleGuard)
            event_publisher: Optional publisher for reconciliation events
            clock: Callable returning the current UTC time
        """
        self.reconciler = reconciler
        self.guard = guard or LocalCycleGuard()
        self.event_publisher = event_publisher
        self._clock = clock

    def run_sweep(self, stop_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        """
        Run one guarded reconciliation cycle.

        Args:
            stop_event: When set, the in-flight cycle abandons remaining work

        Returns:
            Report dictionary with 'skipped' and 'aborted' flags
        """
        prefix = self.reconciler.prefix

        try:
            with self.guard.hold() as guard_lost:
                return self._run_cycle(_CycleStop(stop_event, guard_lost))
        except CycleInProgressError:
            logger.info(f"Reconciliation of '{prefix}' skipped, previous cycle still running")
            self._publish(ReconciliationSkippedEvent(aggregate_id=prefix, occurred_at=self._clock()))
            return {"prefix": prefix, "skipped": True, "aborted": False}
        except TransientStoreError as e:
            # Guard itself unreachable; nothing ran
            logger.error(f"Reconciliation of '{prefix}' could not acquire guard: {e}")
            return self._aborted(str(e))

    def _run_cycle(self, stop_event: _CycleStop) -> Dict[str, Any]:
        try:
            report = self.reconciler.run_cycle(stop_event)
        except PartialListingError as e:
            logger.error(f"Reconciliation aborted, listing incomplete: {e}")
            return self._aborted(str(e))

        for key in report.deleted_keys:
            self._publish(OrphanObjectDeletedEvent(aggregate_id=key, occurred_at=report.finished_at))

        result = report.to_dict()
        result.update({"skipped": False, "aborted": False})
        self._publish(ReconciliationCompletedEvent(
            aggregate_id=report.prefix,
            occurred_at=report.finished_at,
            report=result,
        ))
        return result

    def _aborted(self, error_message: str) -> Dict[str, Any]:
        prefix = self.reconciler.prefix
        self._publish(ReconciliationAbortedEvent(
            aggregate_id=prefix,
            occurred_at=self._clock(),
            error_message=error_message,
        ))
        return {
            "prefix": prefix,
            "skipped": False,
            "aborted": True,
            "deleted": 0,
            "errors": [error_message],
        }

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
