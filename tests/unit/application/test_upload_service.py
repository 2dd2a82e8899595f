"""
Unit tests for UploadService.

Tests verify the upload workflow with in-memory stores:
- Object write followed by registration
- Public URL derivation
- Rollback of the object write when registration fails
- Event publication
"""

from unittest.mock import Mock

import pytest

from tempdrop.application.event_publisher import EventPublisher
from tempdrop.application.upload_service import UploadService
from tempdrop.domain.errors import (
    DuplicateKeyError,
    PersistenceError,
    RecordNotFoundError,
    TransientStoreError,
)
from tempdrop.domain.events import FileRegisteredEvent, RegistrationFailedEvent
from tests.fixtures.mock_repositories import upload_stream


@pytest.fixture
def retention_config(retention):
    config = Mock()
    config.managed_prefix = "uploads/"
    config.retention = retention
    config.public_url_for.side_effect = lambda key, fallback: f"https://cdn.example.com/{key}"
    return config


@pytest.fixture
def published():
    return []


@pytest.fixture
def event_publisher(published):
    publisher = EventPublisher()
    publisher.subscribe(FileRegisteredEvent, published.append)
    publisher.subscribe(RegistrationFailedEvent, published.append)
    return publisher


@pytest.fixture
def upload_service(object_storage, registrar, retention_config, event_publisher):
    return UploadService(object_storage, registrar, retention_config, event_publisher)


class TestUpload:
    """Test the upload workflow."""

    def test_upload_stores_object_and_registers_record(self, upload_service, object_storage,
                                                       record_repository):
        record = upload_service.upload(upload_stream(b"hello"), "notes.txt", "text/plain", 5)

        assert record.store_key.startswith("uploads/")
        assert record.store_key.endswith(".txt")
        assert object_storage.objects[record.store_key] == b"hello"
        assert record_repository.find_by_id(record.id) == record
        assert record.original_name == "notes.txt"
        assert record.mime_type == "text/plain"
        assert record.size == 5

    def test_upload_derives_public_url_from_key(self, upload_service):
        record = upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert record.public_url == f"https://cdn.example.com/{record.store_key}"
        assert record.object_url == f"https://bucket.example.com/{record.store_key}"

    def test_upload_publishes_registered_event(self, upload_service, published, registrar):
        record = upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert len(published) == 1
        event = published[0]
        assert isinstance(event, FileRegisteredEvent)
        assert event.aggregate_id == record.id
        assert event.expires_at == registrar.expires_at(record)

    def test_object_write_failure_registers_nothing(self, upload_service, object_storage,
                                                    record_repository):
        object_storage.fail_put = True

        with pytest.raises(TransientStoreError):
            upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert record_repository.get_call_count("insert") == 0
        assert record_repository.reserved_keys() == set()

    def test_key_is_reserved_while_object_is_written(self, upload_service, object_storage,
                                                     record_repository):
        reserved_during_put = []
        storage_put = object_storage.put

        def put(key, content, content_type="application/octet-stream"):
            reserved_during_put.append(record_repository.is_key_claimed(key))
            return storage_put(key, content, content_type)

        object_storage.put = put

        record = upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert reserved_during_put == [True]
        assert record_repository.reserved_keys() == set()
        assert record_repository.find_by_key(record.store_key) == record

    def test_sweep_between_write_and_registration_keeps_object(
        self, upload_service, object_storage, registrar, reconciler
    ):
        sweep_reports = []
        storage_put = object_storage.put

        def put_then_sweep(key, content, content_type="application/octet-stream"):
            stored = storage_put(key, content, content_type)
            sweep_reports.append(reconciler.run_cycle())
            return stored

        object_storage.put = put_then_sweep

        record = upload_service.upload(upload_stream(b"hello"), "a.png", "image/png", 5)

        assert sweep_reports[0].listed == 1
        assert sweep_reports[0].deleted == 0
        assert registrar.get_record(record.id) == record
        assert object_storage.exists(record.store_key)

    def test_reservation_failure_writes_nothing(self, upload_service, object_storage,
                                                record_repository):
        record_repository.fail_reserve = TransientStoreError("redis down")

        with pytest.raises(TransientStoreError):
            upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert object_storage.get_call_count("put") == 0
        assert object_storage.objects == {}

    def test_taken_key_is_rejected_before_write(self, upload_service, object_storage,
                                                record_repository):
        record_repository.reserve_key = Mock(return_value=False)

        with pytest.raises(DuplicateKeyError):
            upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert object_storage.objects == {}

    @pytest.mark.parametrize("error", [
        PersistenceError("redis down"),
        DuplicateKeyError("uploads/x"),
    ])
    def test_registration_failure_rolls_back_object(self, upload_service, object_storage,
                                                    record_repository, published, error):
        record_repository.fail_insert = error

        with pytest.raises(type(error)):
            upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert object_storage.objects == {}
        assert record_repository.reserved_keys() == set()
        assert len(published) == 1
        assert isinstance(published[0], RegistrationFailedEvent)
        assert published[0].rolled_back is True

    def test_failed_rollback_leaves_object_for_sweep(self, upload_service, object_storage,
                                                     record_repository, published):
        record_repository.fail_insert = PersistenceError("redis down")
        storage_delete = object_storage.delete

        def failing_delete(key):
            object_storage.failing_deletes.add(key)
            return storage_delete(key)

        object_storage.delete = failing_delete

        with pytest.raises(PersistenceError):
            upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        assert len(object_storage.objects) == 1
        assert published[0].rolled_back is False


class TestLookup:
    """Test record lookups and representation."""

    def test_get_record_and_describe(self, upload_service, registrar):
        record = upload_service.upload(upload_stream(), "a.png", "image/png", 11)

        found = upload_service.get_record(record.id)
        data = upload_service.describe(found)

        assert data["id"] == record.id
        assert data["expires_at"] == registrar.expires_at(record).isoformat()
        assert data["created_at"] == record.created_at.isoformat()

    def test_get_record_after_expiry(self, upload_service, clock, retention):
        record = upload_service.upload(upload_stream(), "a.png", "image/png", 11)
        clock.advance(seconds=retention.total_seconds() + 1)

        with pytest.raises(RecordNotFoundError):
            upload_service.get_record(record.id)

    def test_works_without_event_publisher(self, object_storage, registrar, retention_config):
        service = UploadService(object_storage, registrar, retention_config)

        record = service.upload(upload_stream(), "a.png", "image/png", 11)

        assert record.id is not None
