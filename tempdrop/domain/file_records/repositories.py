"""
File Record Repositories

Repository interface for file metadata persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Iterable, Optional, Set

from .entities import FileRecord


class FileRecordRepository(ABC):
    """
    Abstract repository interface for file metadata persistence.

    Implementations must expire records automatically once the retention
    window has elapsed since ``created_at``. The store's own expiry mechanism
    is the only thing that ever removes a record.
    """

    @abstractmethod
    def insert(self, record: FileRecord) -> FileRecord:
        """
        Insert a new record and start its expiry clock.

        Replaces a pending reservation of record.store_key.

        Args:
            record: FileRecord to persist

        Returns:
            The stored FileRecord

        Raises:
            DuplicateKeyError: If a record already exists for record.store_key
            PersistenceError: If the store cannot persist the record
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        """
        Retrieve a live record by id.

        Returns:
            FileRecord if found and not expired, None otherwise

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_by_key(self, store_key: str) -> Optional[FileRecord]:
        """
        Retrieve a live record by store key.

        Returns:
            FileRecord if found and not expired, None otherwise

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_live_keys(self, store_keys: Iterable[str]) -> Set[str]:
        """
        Batch liveness check.

        Args:
            store_keys: Store keys to check

        Returns:
            The subset of store_keys that have a live record or a pending
            reservation

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def reserve_key(self, store_key: str, ttl: timedelta) -> bool:
        """
        Mark a store key as in use before its object is written.

        A reserved key counts as live for find_live_keys and is_key_claimed
        until insert replaces the reservation, release_key drops it, or ttl
        elapses.

        Returns:
            True if reserved, False if the key is already reserved or registered

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def release_key(self, store_key: str) -> None:
        """
        Drop a pending reservation. Registered keys are left untouched.

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def is_key_claimed(self, store_key: str) -> bool:
        """
        Check a single key for a live record or a pending reservation.

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover
