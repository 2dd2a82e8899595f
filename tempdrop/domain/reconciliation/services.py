"""
Reconciliation Services

Domain service that deletes objects whose file record has expired.

The metadata store expires records passively and emits no notification, so
the sweep is pull-based: every cycle lists the managed prefix, diffs it
against the live record keys and deletes whatever is left over. A cycle keeps
no state between runs and can be repeated or interrupted at any point.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional

from tempdrop.domain.errors import PartialListingError, TransientStoreError
from tempdrop.domain.file_records.repositories import FileRecordRepository
from tempdrop.domain.object_storage.storage_repository import IObjectStorageRepository
from .entities import ReconciliationReport

logger = logging.getLogger(__name__)

DELETED = "deleted"
ALREADY_GONE = "already_gone"
FAILED = "failed"
ABANDONED = "abandoned"


def _chunks(items: List[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class OrphanReconciler:
    """
    Runs a single reconciliation cycle.

    Cycle states: listing, checking, deleting. Listing must complete before
    anything is deleted. Lookups and deletions are isolated per key: a failed
    lookup skips its key, a failed delete is counted and the cycle carries on.
    """

    def __init__(
        self,
        storage_repository: IObjectStorageRepository,
        record_repository: FileRecordRepository,
        prefix: str,
        lookup_batch_size: int = 100,
        max_workers: int = 8,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize OrphanReconciler.

        Args:
            storage_repository: Object store holding uploaded files
            record_repository: Metadata store holding file records
            prefix: Managed namespace prefix; keys outside it are never touched
            lookup_batch_size: Keys per batched liveness lookup
            max_workers: Upper bound on concurrent deletions
            clock: Callable returning the current UTC time
        """
        if lookup_batch_size < 1:
            raise ValueError("lookup_batch_size must be at least 1")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.storage = storage_repository
        self.record_repo = record_repository
        self.prefix = prefix
        self.lookup_batch_size = lookup_batch_size
        self.max_workers = max_workers
        self._clock = clock

    def run_cycle(self, stop_event: Optional[threading.Event] = None) -> ReconciliationReport:
        """
        Run one sweep over the managed prefix.

        Args:
            stop_event: When set, remaining work is abandoned

        Returns:
            ReconciliationReport for the cycle

        Raises:
            PartialListingError: If enumeration failed; nothing was deleted
        """
        report = ReconciliationReport(prefix=self.prefix, started_at=self._clock())

        keys = self._enumerate_keys()
        report.listed = len(keys)
        logger.debug(f"Listed {len(keys)} objects under '{self.prefix}'")

        orphans: List[str] = []
        for batch in _chunks(keys, self.lookup_batch_size):
            if _is_set(stop_event):
                report.abandoned = True
                break
            orphans.extend(self._find_orphans(batch, report))

        report.orphaned = len(orphans)

        if orphans and not report.abandoned:
            self._delete_orphans(orphans, report, stop_event)

        return report.finish(self._clock())

    def _enumerate_keys(self) -> List[str]:
        """
        Materialize the complete listing of the managed prefix.

        Raises:
            PartialListingError: If any page of the listing failed
        """
        keys: List[str] = []
        try:
            for key in self.storage.list_keys(self.prefix):
                if not key.startswith(self.prefix):
                    logger.debug(f"Ignoring key outside managed prefix: {key}")
                    continue
                keys.append(key)
        except Exception as e:
            raise PartialListingError(self.prefix, len(keys), original_error=e) from e

        return list(dict.fromkeys(keys))

    def _find_orphans(self, batch: List[str], report: ReconciliationReport) -> List[str]:
        """
        Return the keys in batch that have no live record.

        Falls back to per-key lookups when the batch lookup fails, so that one
        bad round trip does not hide the liveness of every key in the batch.
        """
        try:
            live_keys = self.record_repo.find_live_keys(batch)
        except TransientStoreError as e:
            logger.warning(
                f"Batch lookup of {len(batch)} keys failed, checking individually: {e}"
            )
            return self._find_orphans_individually(batch, report)

        report.live += sum(1 for key in batch if key in live_keys)
        return [key for key in batch if key not in live_keys]

    def _find_orphans_individually(self, keys: Iterable[str],
                                   report: ReconciliationReport) -> List[str]:
        orphans = []
        for key in keys:
            try:
                claimed = self.record_repo.is_key_claimed(key)
            except TransientStoreError as e:
                # Liveness unknown: never delete on a failed lookup
                report.unchecked += 1
                report.errors.append(f"Lookup failed for {key}: {e}")
                logger.warning(f"Skipping {key} this cycle, lookup failed: {e}")
                continue

            if not claimed:
                orphans.append(key)
            else:
                report.live += 1
        return orphans

    def _delete_orphans(self, orphans: List[str], report: ReconciliationReport,
                        stop_event: Optional[threading.Event]) -> None:
        workers = min(self.max_workers, len(orphans))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reconcile") as executor:
            futures = {
                executor.submit(self._delete_orphan, key, stop_event): key
                for key in orphans
            }
            for future in as_completed(futures):
                key = futures[future]
                outcome, error = future.result()

                if outcome == DELETED:
                    report.deleted += 1
                    report.deleted_keys.append(key)
                elif outcome == ALREADY_GONE:
                    report.already_gone += 1
                elif outcome == ABANDONED:
                    report.abandoned = True
                else:
                    report.failed += 1
                    report.errors.append(f"Delete failed for {key}: {error}")

    def _delete_orphan(self, key: str, stop_event: Optional[threading.Event]):
        """Delete one orphan. Returns an (outcome, error) pair and never raises."""
        if _is_set(stop_event):
            return ABANDONED, None

        try:
            if self.storage.delete(key):
                logger.info(f"Deleted orphaned object: {key}")
                return DELETED, None
            logger.debug(f"Orphaned object already gone: {key}")
            return ALREADY_GONE, None
        except TransientStoreError as e:
            logger.warning(f"Failed to delete orphaned object {key}: {e}")
            return FAILED, e
        except Exception as e:
            logger.error(f"Unexpected error deleting orphaned object {key}: {e}", exc_info=True)
            return FAILED, e


def _is_set(stop_event: Optional[threading.Event]) -> bool:
    return stop_event is not None and stop_event.is_set()
