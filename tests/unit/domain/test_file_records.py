"""
Unit tests for the file records domain.

Covers FileRecord expiry derivation and serialization, StoreKey validation
and generation, and RecordRegistrar registration and lookup.
"""

import re
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from tempdrop.domain.errors import (
    DuplicateKeyError,
    InvalidStoreKeyError,
    PersistenceError,
    RecordNotFoundError,
)
from tempdrop.domain.file_records import FileRecord, RecordRegistrar, StoreKey


def _record(created_at: datetime, **overrides) -> FileRecord:
    fields = dict(
        id="abc123",
        store_key="uploads/1700000000000-0011223344556677.png",
        original_name="photo.png",
        mime_type="image/png",
        size=2048,
        public_url="https://cdn.example.com/uploads/1700000000000-0011223344556677.png",
        created_at=created_at,
    )
    fields.update(overrides)
    return FileRecord(**fields)


class TestFileRecord:
    """Test FileRecord entity behavior."""

    def test_expires_at_is_created_at_plus_retention(self, fixed_datetime):
        record = _record(fixed_datetime)

        assert record.expires_at(timedelta(minutes=10)) == fixed_datetime + timedelta(minutes=10)

    def test_is_expired_at_exact_boundary(self, fixed_datetime):
        """A record stops being live at created_at + retention, not after."""
        record = _record(fixed_datetime)
        retention = timedelta(minutes=10)

        assert not record.is_expired(retention, fixed_datetime + timedelta(minutes=9, seconds=59))
        assert record.is_expired(retention, fixed_datetime + retention)

    def test_remaining_milliseconds_never_negative(self, fixed_datetime):
        record = _record(fixed_datetime)
        retention = timedelta(seconds=30)

        assert record.get_remaining_milliseconds(retention, fixed_datetime) == 30000
        assert record.get_remaining_milliseconds(retention, fixed_datetime + timedelta(seconds=29.5)) == 500
        assert record.get_remaining_milliseconds(retention, fixed_datetime + timedelta(hours=1)) == 0

    def test_dict_round_trip_preserves_fields(self, fixed_datetime):
        record = _record(fixed_datetime, object_url="s3://bucket/key")

        assert FileRecord.from_dict(record.to_dict()) == record

    def test_from_dict_tolerates_missing_object_url(self, fixed_datetime):
        data = _record(fixed_datetime).to_dict()
        del data["object_url"]

        assert FileRecord.from_dict(data).object_url is None

    def test_create_leaves_id_unset(self, fixed_datetime):
        record = FileRecord.create(
            store_key="uploads/k.bin",
            original_name="k.bin",
            mime_type="application/octet-stream",
            size=1,
            public_url="https://cdn.example.com/uploads/k.bin",
            created_at=fixed_datetime,
        )

        assert record.id is None
        assert record.created_at == fixed_datetime

    def test_record_is_immutable(self, fixed_datetime):
        record = _record(fixed_datetime)

        with pytest.raises(Exception):
            record.size = 0


class TestStoreKey:
    """Test StoreKey validation and generation."""

    @pytest.mark.parametrize("value", ["", "/uploads/a.png", "uploads/../etc/passwd", ".."])
    def test_rejects_invalid_keys(self, value):
        with pytest.raises(InvalidStoreKeyError):
            StoreKey(value)

    def test_invalid_key_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            StoreKey("")

    def test_accepts_nested_keys(self):
        assert str(StoreKey("uploads/2024/a.png")) == "uploads/2024/a.png"

    def test_generate_format(self):
        key = StoreKey.generate("uploads/", "Holiday Photo.JPG", now_ms=1700000000000)

        assert re.fullmatch(r"uploads/1700000000000-[0-9a-f]{16}\.jpg", key.value)

    def test_generate_without_extension(self):
        key = StoreKey.generate("uploads/", "README", now_ms=1)

        assert re.fullmatch(r"uploads/1-[0-9a-f]{16}", key.value)

    @pytest.mark.parametrize("name", [None, "", "archive.", "evil.p/hp", "weird.$x", "dir.d/file"])
    def test_generate_drops_unsafe_extensions(self, name):
        key = StoreKey.generate("uploads/", name, now_ms=1)

        assert re.fullmatch(r"uploads/1-[0-9a-f]{16}", key.value)

    def test_generate_truncates_long_extensions(self):
        key = StoreKey.generate("uploads/", "file." + "a" * 40, now_ms=1)

        assert key.value.endswith("." + "a" * 15)

    def test_generated_keys_are_unique(self):
        keys = {StoreKey.generate("uploads/", "a.txt", now_ms=1).value for _ in range(500)}

        assert len(keys) == 500


class TestRecordRegistrar:
    """Test RecordRegistrar registration and lookup."""

    def test_register_upload_stamps_clock_and_assigns_id(self, registrar, clock):
        record = registrar.register_upload(
            store_key="uploads/1-aa.png",
            original_name="a.png",
            mime_type="image/png",
            size=10,
            public_url="https://cdn.example.com/uploads/1-aa.png",
        )

        assert record.id is not None
        assert record.created_at == clock()
        assert registrar.expires_at(record) == clock() + registrar.retention

    def test_register_upload_rejects_duplicate_key(self, registrar):
        kwargs = dict(
            store_key="uploads/1-aa.png",
            original_name="a.png",
            mime_type="image/png",
            size=10,
            public_url="https://cdn.example.com/uploads/1-aa.png",
        )
        first = registrar.register_upload(**kwargs)

        with pytest.raises(DuplicateKeyError) as exc_info:
            registrar.register_upload(**kwargs)

        assert exc_info.value.store_key == "uploads/1-aa.png"
        assert registrar.get_record(first.id) == first

    def test_register_upload_propagates_persistence_error(self, retention):
        repo = Mock()
        repo.insert.side_effect = PersistenceError("redis down")
        registrar = RecordRegistrar(repo, retention)

        with pytest.raises(PersistenceError):
            registrar.register_upload("uploads/k", "k", "text/plain", 1, "https://x/k")
        repo.insert.assert_called_once()

    def test_get_record_returns_live_record(self, registrar, record_repository):
        record = record_repository.add("uploads/live.txt")

        assert registrar.get_record(record.id) == record

    def test_get_record_unknown_id(self, registrar):
        with pytest.raises(RecordNotFoundError) as exc_info:
            registrar.get_record("missing")

        assert exc_info.value.record_id == "missing"

    def test_get_record_expired_is_indistinguishable_from_missing(self, retention, clock):
        """An expired record that the store still returns is reported as not found."""
        record = _record(clock() - retention - timedelta(seconds=1))
        repo = Mock()
        repo.find_by_id.return_value = record
        registrar = RecordRegistrar(repo, retention, clock=clock)

        with pytest.raises(RecordNotFoundError):
            registrar.get_record(record.id)

    def test_reserve_key_uses_reservation_ttl(self, retention):
        repo = Mock()
        repo.reserve_key.return_value = True
        registrar = RecordRegistrar(repo, retention, reservation_ttl=timedelta(seconds=45))

        registrar.reserve_key("uploads/k")

        repo.reserve_key.assert_called_once_with("uploads/k", timedelta(seconds=45))

    def test_reserve_taken_key_is_duplicate(self, registrar, record_repository):
        record_repository.add("uploads/taken.png")
        registrar.reserve_key("uploads/pending.png")

        with pytest.raises(DuplicateKeyError):
            registrar.reserve_key("uploads/taken.png")
        with pytest.raises(DuplicateKeyError):
            registrar.reserve_key("uploads/pending.png")

    def test_register_upload_replaces_reservation(self, registrar, record_repository):
        registrar.reserve_key("uploads/1-aa.png")

        record = registrar.register_upload(
            "uploads/1-aa.png", "a.png", "image/png", 10, "https://cdn.example.com/uploads/1-aa.png"
        )

        assert record_repository.reserved_keys() == set()
        assert record_repository.find_by_key("uploads/1-aa.png") == record

    def test_release_key(self, registrar, record_repository):
        registrar.reserve_key("uploads/1-aa.png")

        registrar.release_key("uploads/1-aa.png")

        assert not record_repository.is_key_claimed("uploads/1-aa.png")
