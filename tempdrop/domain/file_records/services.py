"""
File Record Services

Domain service that registers uploaded objects and serves record lookups.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from tempdrop.domain.errors import DuplicateKeyError, RecordNotFoundError
from .entities import FileRecord
from .repositories import FileRecordRepository

logger = logging.getLogger(__name__)


class RecordRegistrar:
    """
    Domain service for creating and reading file records.

    Writes exactly one FileRecord per stored object. The creation timestamp
    assigned here anchors both the metadata TTL and the advertised expiry of
    the public link. No retries are attempted; retry policy belongs to the
    caller.
    """

    def __init__(
        self,
        record_repository: FileRecordRepository,
        retention: timedelta,
        clock: Callable[[], datetime] = datetime.utcnow,
        reservation_ttl: timedelta = timedelta(minutes=5),
    ):
        """
        Initialize RecordRegistrar.

        Args:
            record_repository: Repository for file metadata persistence
            retention: Retention window applied to every record
            clock: Callable returning the current UTC time
            reservation_ttl: How long a key stays reserved while its object is written
        """
        self.record_repo = record_repository
        self.retention = retention
        self._clock = clock
        self.reservation_ttl = reservation_ttl

    def reserve_key(self, store_key: str) -> None:
        """
        Reserve a store key before its object is written.

        Until the record is inserted, the reservation keeps the reconciliation
        sweep from treating the new object as an orphan.

        Raises:
            DuplicateKeyError: If the key is already reserved or registered
            TransientStoreError: If the metadata store is unavailable
        """
        if not self.record_repo.reserve_key(store_key, self.reservation_ttl):
            raise DuplicateKeyError(store_key)

    def release_key(self, store_key: str) -> None:
        """
        Drop the reservation of a key whose object was never registered.

        Raises:
            TransientStoreError: If the metadata store is unavailable
        """
        self.record_repo.release_key(store_key)

    def register_upload(
        self,
        store_key: str,
        original_name: str,
        mime_type: str,
        size: int,
        public_url: str,
        object_url: Optional[str] = None,
    ) -> FileRecord:
        """
        Register a successfully stored object.

        Args:
            store_key: Key of the object in the object store
            original_name: Uploaded file name
            mime_type: MIME type of the upload
            size: Size in bytes
            public_url: Shareable address derived from the store key
            object_url: Storage-native location of the object

        Returns:
            The inserted FileRecord, with its store-assigned id

        Raises:
            DuplicateKeyError: If store_key is already registered
            PersistenceError: If the metadata store is unavailable
        """
        record = FileRecord.create(
            store_key=store_key,
            original_name=original_name,
            mime_type=mime_type,
            size=size,
            public_url=public_url,
            created_at=self._clock(),
            object_url=object_url,
        )

        stored = self.record_repo.insert(record)
        logger.info(
            f"Registered file record {stored.id} for {store_key} "
            f"(expires at {stored.expires_at(self.retention).isoformat()})"
        )
        return stored

    def get_record(self, record_id: str) -> FileRecord:
        """
        Retrieve a live record by id.

        Args:
            record_id: Record identifier

        Returns:
            FileRecord entity

        Raises:
            RecordNotFoundError: If the record never existed or has expired
            TransientStoreError: If the metadata store cannot be reached
        """
        record = self.record_repo.find_by_id(record_id)

        if record is None or record.is_expired(self.retention, self._clock()):
            raise RecordNotFoundError(record_id)

        return record

    def expires_at(self, record: FileRecord) -> datetime:
        """Get the advertised expiry of a record's public link."""
        return record.expires_at(self.retention)
