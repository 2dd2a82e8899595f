"""
Mock Repository Implementations

In-memory implementations of the repository interfaces for unit and
property tests. Both provide realistic behavior plus failure injection and
inspection methods for test assertions.
"""

import io
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Dict, Iterable, Iterator, List, Optional, Set

from tempdrop.domain.errors import DuplicateKeyError, PersistenceError, TransientStoreError
from tempdrop.domain.file_records.entities import FileRecord
from tempdrop.domain.file_records.repositories import FileRecordRepository
from tempdrop.domain.object_storage.storage_repository import (
    IObjectStorageRepository,
    StoredObject,
)


class FakeClock:
    """Controllable UTC clock, callable like datetime.utcnow."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, **kwargs)
        return self.now


class MockFileRecordRepository(FileRecordRepository):
    """
    In-memory FileRecordRepository with TTL semantics.

    Records disappear once the clock passes created_at + retention, the way
    Redis evicts keys; key reservations lapse after their own TTL. Failures
    can be injected for reservations, inserts, batch lookups and individual
    key lookups.
    """

    def __init__(self, retention: timedelta = timedelta(minutes=10),
                 clock: Optional[FakeClock] = None):
        self.retention = retention
        self.clock = clock or FakeClock()
        self._records: Dict[str, FileRecord] = {}
        self._index: Dict[str, str] = {}
        self._reservations: Dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._call_history: List[Dict[str, Any]] = []

        self.fail_reserve: Optional[Exception] = None
        self.fail_insert: Optional[Exception] = None
        self.fail_batch_lookup = False
        self.failing_keys: Set[str] = set()

    def _is_live(self, record: FileRecord) -> bool:
        return not record.is_expired(self.retention, self.clock())

    def _is_reserved(self, store_key: str) -> bool:
        deadline = self._reservations.get(store_key)
        return deadline is not None and self.clock() < deadline

    def _has_live_record(self, store_key: str) -> bool:
        record_id = self._index.get(store_key)
        return record_id is not None and self._is_live(self._records[record_id])

    def reserve_key(self, store_key: str, ttl: timedelta) -> bool:
        self._call_history.append({"method": "reserve_key", "args": {"store_key": store_key}})
        if self.fail_reserve is not None:
            raise self.fail_reserve

        with self._lock:
            if self._is_reserved(store_key) or self._has_live_record(store_key):
                return False
            self._reservations[store_key] = self.clock() + ttl
            return True

    def release_key(self, store_key: str) -> None:
        self._call_history.append({"method": "release_key", "args": {"store_key": store_key}})
        self._reservations.pop(store_key, None)

    def is_key_claimed(self, store_key: str) -> bool:
        self._call_history.append({"method": "is_key_claimed", "args": {"store_key": store_key}})
        if store_key in self.failing_keys:
            raise TransientStoreError(f"Injected lookup failure for {store_key}")
        return self._is_reserved(store_key) or self._has_live_record(store_key)

    def insert(self, record: FileRecord) -> FileRecord:
        self._call_history.append({"method": "insert", "args": {"store_key": record.store_key}})
        if self.fail_insert is not None:
            raise self.fail_insert

        with self._lock:
            if self._has_live_record(record.store_key):
                raise DuplicateKeyError(record.store_key)

            if record.is_expired(self.retention, self.clock()):
                raise PersistenceError(f"Record for {record.store_key} is already expired")

            stored = record if record.id else replace(record, id=uuid.uuid4().hex)
            self._records[stored.id] = stored
            self._index[stored.store_key] = stored.id
            self._reservations.pop(stored.store_key, None)
            return stored

    def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        self._call_history.append({"method": "find_by_id", "args": {"record_id": record_id}})
        record = self._records.get(record_id)
        if record is None or not self._is_live(record):
            return None
        return record

    def find_by_key(self, store_key: str) -> Optional[FileRecord]:
        self._call_history.append({"method": "find_by_key", "args": {"store_key": store_key}})
        if store_key in self.failing_keys:
            raise TransientStoreError(f"Injected lookup failure for {store_key}")

        record_id = self._index.get(store_key)
        if record_id is None:
            return None
        return self.find_by_id(record_id)

    def find_live_keys(self, store_keys: Iterable[str]) -> Set[str]:
        keys = list(store_keys)
        self._call_history.append({"method": "find_live_keys", "args": {"store_keys": keys}})
        if self.fail_batch_lookup or self.failing_keys.intersection(keys):
            raise TransientStoreError("Injected batch lookup failure")

        return {key for key in keys if self._is_reserved(key) or self._has_live_record(key)}

    # Test helpers

    def add(self, store_key: str, created_at: Optional[datetime] = None) -> FileRecord:
        """Insert a record directly, bypassing duplicate and expiry checks."""
        record = FileRecord(
            id=uuid.uuid4().hex,
            store_key=store_key,
            original_name=store_key.rsplit("/", 1)[-1],
            mime_type="application/octet-stream",
            size=1,
            public_url=f"https://cdn.example.com/{store_key}",
            created_at=created_at or self.clock(),
        )
        self._records[record.id] = record
        self._index[store_key] = record.id
        return record

    def reserved_keys(self) -> Set[str]:
        return {key for key in self._reservations if self._is_reserved(key)}

    def live_keys(self) -> Set[str]:
        return {r.store_key for r in self._records.values() if self._is_live(r)}

    def get_call_count(self, method: str) -> int:
        return sum(1 for call in self._call_history if call["method"] == method)


class MockObjectStorageRepository(IObjectStorageRepository):
    """
    In-memory IObjectStorageRepository with paged listing.

    Failures can be injected for a listing page, for puts and for deletes of
    specific keys.
    """

    def __init__(self, page_size: int = 1000, base_url: str = "https://bucket.example.com"):
        self.page_size = page_size
        self.base_url = base_url
        self.objects: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        self._call_history: List[Dict[str, Any]] = []

        self.fail_on_page: Optional[int] = None
        self.fail_put = False
        self.failing_deletes: Set[str] = set()
        self.extra_listed_keys: List[str] = []

    def put(self, key: str, content: BinaryIO,
            content_type: str = "application/octet-stream") -> StoredObject:
        self._call_history.append({"method": "put", "args": {"key": key, "content_type": content_type}})
        if self.fail_put:
            raise TransientStoreError(f"Injected put failure for {key}")

        with self._lock:
            self.objects[key] = content.read()
        return StoredObject(key=key, url=f"{self.base_url}/{key}")

    def list_keys(self, prefix: str) -> Iterator[str]:
        self._call_history.append({"method": "list_keys", "args": {"prefix": prefix}})
        with self._lock:
            keys = sorted(k for k in self.objects if k.startswith(prefix))
        keys.extend(self.extra_listed_keys)

        for page_number, start in enumerate(range(0, len(keys), self.page_size)):
            if self.fail_on_page == page_number:
                raise TransientStoreError(f"Injected failure on page {page_number}")
            yield from keys[start:start + self.page_size]

    def delete(self, key: str) -> bool:
        self._call_history.append({"method": "delete", "args": {"key": key}})
        if key in self.failing_deletes:
            raise TransientStoreError(f"Injected delete failure for {key}")

        with self._lock:
            return self.objects.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        return key in self.objects

    # Test helpers

    def add(self, key: str, content: bytes = b"data") -> None:
        self.objects[key] = content

    def add_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.add(key)

    def deleted_keys(self) -> List[str]:
        return [c["args"]["key"] for c in self._call_history if c["method"] == "delete"]

    def get_call_count(self, method: str) -> int:
        return sum(1 for call in self._call_history if call["method"] == method)


def upload_stream(content: bytes = b"hello world") -> io.BytesIO:
    """Build an in-memory upload stream."""
    return io.BytesIO(content)
