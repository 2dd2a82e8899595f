"""
Redis File Record Repository Implementation

Concrete Redis-based implementation of FileRecordRepository.
Stores file metadata with automatic expiration using Redis TTL.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Set

from tempdrop.domain.errors import DuplicateKeyError, PersistenceError, TransientStoreError
from tempdrop.domain.file_records.entities import FileRecord
from tempdrop.domain.file_records.repositories import FileRecordRepository

logger = logging.getLogger(__name__)

# Index value held by a key whose object is still being written
PENDING = "__pending__"


class RedisFileRecordRepository(FileRecordRepository):
    """
    Redis-based implementation of FileRecordRepository.

    Creates two mappings, both expiring at ``created_at + retention``:
    - file_record:<id> -> record JSON
    - file_key:<store_key> -> id (unique index, written with NX)

    Before an upload writes its object, the index is reserved with the PENDING
    marker and a short TTL so the sweep treats the key as live. insert
    replaces the marker with the record id.

    Redis' native key expiry is the only writer of expiry; nothing here ever
    deletes or rewrites a record.
    """

    def __init__(self, redis_repository, retention: timedelta,
                 clock: Callable[[], datetime] = datetime.utcnow):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
            retention: Retention window applied to every record
            clock: Callable returning the current UTC time
        """
        self.redis_repo = redis_repository
        self.retention = retention
        self.record_prefix = "file_record"
        self.key_prefix = "file_key"
        self._clock = clock

    def _record_key(self, record_id: str) -> str:
        return f"{self.record_prefix}:{record_id}"

    def _index_key(self, store_key: str) -> str:
        return f"{self.key_prefix}:{store_key}"

    def insert(self, record: FileRecord) -> FileRecord:
        """
        Save file metadata to Redis with TTL.

        The store key index is claimed first with SET NX, so a second insert
        for the same key fails without touching the first record. A pending
        reservation is taken over.
        """
        if not record.id:
            record = replace(record, id=uuid.uuid4().hex)

        ttl_ms = record.get_remaining_milliseconds(self.retention, self._clock())
        if ttl_ms <= 0:
            raise PersistenceError(f"Refusing to insert already expired record for {record.store_key}")

        try:
            claimed = self.redis_repo.set_value(
                self._index_key(record.store_key), record.id, ttl_ms=ttl_ms, only_if_absent=True
            )
        except TransientStoreError as e:
            raise PersistenceError(f"Failed to claim key {record.store_key}: {e}", e) from e

        if not claimed:
            self._take_over_reservation(record, ttl_ms)

        try:
            self.redis_repo.set_json(self._record_key(record.id), record.to_dict(), ttl_ms=ttl_ms)
        except TransientStoreError as e:
            self._release_index(record.store_key)
            raise PersistenceError(f"Failed to save record for {record.store_key}: {e}", e) from e

        return record

    def _take_over_reservation(self, record: FileRecord, ttl_ms: int) -> None:
        index_key = self._index_key(record.store_key)
        try:
            current = self.redis_repo.get_value(index_key)
            if current == PENDING:
                claimed = self.redis_repo.set_value(index_key, record.id, ttl_ms=ttl_ms)
            elif current is None:
                # Reservation lapsed between the two calls
                claimed = self.redis_repo.set_value(
                    index_key, record.id, ttl_ms=ttl_ms, only_if_absent=True
                )
            else:
                claimed = False
        except TransientStoreError as e:
            raise PersistenceError(f"Failed to claim key {record.store_key}: {e}", e) from e

        if not claimed:
            raise DuplicateKeyError(record.store_key)

    def _release_index(self, store_key: str) -> None:
        try:
            self.redis_repo.delete(self._index_key(store_key))
        except TransientStoreError as e:
            # The index expires with the retention window anyway
            logger.warning(f"Could not release key index for {store_key}: {e}")

    def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        """Retrieve a live record by id."""
        if not record_id:
            return None

        data = self.redis_repo.get_json(self._record_key(record_id))
        if data is None:
            return None

        try:
            record = FileRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Error deserializing file record {record_id}: {e}")
            return None

        if record.is_expired(self.retention, self._clock()):
            return None
        return record

    def find_by_key(self, store_key: str) -> Optional[FileRecord]:
        """Retrieve a live record by store key."""
        record_id = self.redis_repo.get_value(self._index_key(store_key))
        if record_id is None:
            return None
        return self.find_by_id(record_id)

    def find_live_keys(self, store_keys: Iterable[str]) -> Set[str]:
        """
        Batch liveness check in a single MGET against the key index.
        """
        store_keys = list(store_keys)
        record_ids = self.redis_repo.get_many([self._index_key(key) for key in store_keys])
        return {key for key, record_id in zip(store_keys, record_ids) if record_id is not None}

    def reserve_key(self, store_key: str, ttl: timedelta) -> bool:
        """Reserve the key index with the PENDING marker (SET NX PX)."""
        ttl_ms = max(1, int(ttl.total_seconds() * 1000))
        return self.redis_repo.set_value(
            self._index_key(store_key), PENDING, ttl_ms=ttl_ms, only_if_absent=True
        )

    def release_key(self, store_key: str) -> None:
        """Delete the key index if it still holds the PENDING marker."""
        index_key = self._index_key(store_key)
        if self.redis_repo.get_value(index_key) == PENDING:
            self.redis_repo.delete(index_key)

    def is_key_claimed(self, store_key: str) -> bool:
        """Check the key index for a record id or the PENDING marker."""
        return self.redis_repo.exists(self._index_key(store_key))
