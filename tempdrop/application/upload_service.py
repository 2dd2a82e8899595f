"""
Upload Service

Application service orchestrating the upload workflow: generate a store key,
write the object, register its file record and serve record lookups.
"""

import logging
from datetime import datetime
from typing import Any, BinaryIO, Dict, Optional

from tempdrop.application.event_publisher import EventPublisher
from tempdrop.config.retention_config import RetentionConfig
from tempdrop.domain.errors import DomainError, TransientStoreError
from tempdrop.domain.events import FileRegisteredEvent, RegistrationFailedEvent
from tempdrop.domain.file_records.entities import FileRecord
from tempdrop.domain.file_records.services import RecordRegistrar
from tempdrop.domain.file_records.value_objects import StoreKey
from tempdrop.domain.object_storage.storage_repository import IObjectStorageRepository

logger = logging.getLogger(__name__)


class UploadService:
    """
    Application service for uploads and lookups.

    The store key is reserved in the metadata store, then the object is
    written, then its record replaces the reservation. The reservation keeps a
    concurrent sweep from deleting the object before it is registered. If
    registration fails, the object write is rolled back; if the rollback fails
    too, the object is an orphan and the sweep removes it once the
    reservation lapses.
    """

    def __init__(
        self,
        storage_repository: IObjectStorageRepository,
        registrar: RecordRegistrar,
        retention_config: RetentionConfig,
        event_publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize UploadService.

        Args:
            storage_repository: Object store for uploaded content
            registrar: Domain service creating file records
            retention_config: Managed prefix and public URL settings
            event_publisher: Optional publisher for upload events
        """
        self.storage = storage_repository
        self.registrar = registrar
        self.config = retention_config
        self.event_publisher = event_publisher

    def upload(self, content: BinaryIO, original_name: str, mime_type: str,
               size: int) -> FileRecord:
        """
        Store an upload and register its record.

        Args:
            content: Uploaded bytes as a file-like object
            original_name: Client-provided file name
            mime_type: Client-provided MIME type
            size: Size in bytes

        Returns:
            The registered FileRecord

        Raises:
            TransientStoreError: If the key cannot be reserved or the object write
                fails (nothing to roll back)
            DuplicateKeyError: If the generated key was already taken
            PersistenceError: If the record could not be written
        """
        store_key = str(StoreKey.generate(self.config.managed_prefix, original_name))
        self.registrar.reserve_key(store_key)

        try:
            stored = self.storage.put(store_key, content, content_type=mime_type)
        except Exception:
            self._release_reservation(store_key)
            raise

        public_url = self.config.public_url_for(stored.key, fallback=stored.url)

        try:
            record = self.registrar.register_upload(
                store_key=stored.key,
                original_name=original_name,
                mime_type=mime_type,
                size=size,
                public_url=public_url,
                object_url=stored.url,
            )
        except DomainError as e:
            rolled_back = self._rollback_object(stored.key)
            self._release_reservation(stored.key)
            self._publish(RegistrationFailedEvent(
                aggregate_id=stored.key,
                occurred_at=datetime.utcnow(),
                error_message=str(e),
                rolled_back=rolled_back,
            ))
            raise

        self._publish(FileRegisteredEvent(
            aggregate_id=record.id,
            occurred_at=datetime.utcnow(),
            store_key=record.store_key,
            expires_at=self.registrar.expires_at(record),
        ))
        return record

    def _rollback_object(self, key: str) -> bool:
        try:
            self.storage.delete(key)
            logger.info(f"Rolled back object write for unregistered key {key}")
            return True
        except TransientStoreError as e:
            logger.warning(f"Rollback of {key} failed, leaving it to the sweep: {e}")
            return False

    def _release_reservation(self, key: str) -> None:
        try:
            self.registrar.release_key(key)
        except TransientStoreError as e:
            logger.warning(f"Could not release reservation of {key}, it will lapse: {e}")

    def get_record(self, record_id: str) -> FileRecord:
        """
        Look up a live record.

        Raises:
            RecordNotFoundError: If the record never existed or has expired
            TransientStoreError: If the metadata store cannot be reached
        """
        return self.registrar.get_record(record_id)

    def describe(self, record: FileRecord) -> Dict[str, Any]:
        """
        Build the API representation of a record.

        Adds the derived expiry to the stored fields.
        """
        data = record.to_dict()
        data["expires_at"] = self.registrar.expires_at(record).isoformat()
        return data

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
