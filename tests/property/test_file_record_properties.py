"""
Property-based tests for store keys and record expiry.
"""

from datetime import timedelta

from hypothesis import given
from hypothesis import strategies as st

from tempdrop.domain.file_records.entities import FileRecord
from tempdrop.domain.file_records.value_objects import StoreKey
from tests.property.strategies import PREFIX, creation_times, original_names, retention_windows


def _record(created_at):
    return FileRecord(
        id="r1",
        store_key=f"{PREFIX}1-aa.bin",
        original_name="a.bin",
        mime_type="application/octet-stream",
        size=1,
        public_url=f"https://cdn.example.com/{PREFIX}1-aa.bin",
        created_at=created_at,
    )


@given(name=original_names(), now_ms=st.integers(min_value=0, max_value=2**42))
def test_generated_keys_stay_under_prefix(name, now_ms):
    key = StoreKey.generate(PREFIX, name, now_ms=now_ms)

    assert str(key).startswith(PREFIX)
    assert "/" not in str(key)[len(PREFIX):]
    assert ".." not in str(key).split("/")


@given(name=original_names(), now_ms=st.integers(min_value=0, max_value=2**42))
def test_generated_keys_are_unique_for_the_same_instant(name, now_ms):
    keys = {str(StoreKey.generate(PREFIX, name, now_ms=now_ms)) for _ in range(50)}

    assert len(keys) == 50


@given(created_at=creation_times(), retention=retention_windows())
def test_expiry_is_created_at_plus_retention(created_at, retention):
    record = _record(created_at)

    assert record.expires_at(retention) == created_at + retention
    assert not record.is_expired(retention, created_at)
    assert not record.is_expired(retention, created_at + retention - timedelta(microseconds=1))
    assert record.is_expired(retention, created_at + retention)


@given(
    created_at=creation_times(),
    retention=retention_windows(),
    elapsed=st.integers(min_value=0, max_value=8 * 24 * 3600),
)
def test_remaining_time_never_negative(created_at, retention, elapsed):
    record = _record(created_at)
    now = created_at + timedelta(seconds=elapsed)

    remaining = record.get_remaining_milliseconds(retention, now)

    assert remaining >= 0
    assert (remaining == 0) == record.is_expired(retention, now)
