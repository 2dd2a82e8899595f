"""
File Record Entities

Domain entity for uploaded file metadata.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class FileRecord:
    """
    Entity representing the metadata of one stored object.

    A record is authoritative: an object with no live record is garbage.
    Records are never updated. Expiry is derived from ``created_at`` and the
    retention window, it is not stored.
    """
    id: Optional[str]
    store_key: str
    original_name: str
    mime_type: str
    size: int
    public_url: str
    created_at: datetime
    object_url: Optional[str] = None

    def expires_at(self, retention: timedelta) -> datetime:
        """
        Get the moment this record stops being reachable.

        Args:
            retention: Retention window applied to every record

        Returns:
            ``created_at + retention``
        """
        return self.created_at + retention

    def is_expired(self, retention: timedelta, now: Optional[datetime] = None) -> bool:
        """
        Check if the record is past its retention window.

        Args:
            retention: Retention window applied to every record
            now: Reference time (defaults to the current UTC time)

        Returns:
            True if expired, False otherwise
        """
        if now is None:
            now = datetime.utcnow()
        return now >= self.expires_at(retention)

    def get_remaining_milliseconds(self, retention: timedelta, now: Optional[datetime] = None) -> int:
        """
        Get milliseconds remaining until expiration.

        Returns:
            Milliseconds remaining (0 if expired)
        """
        if now is None:
            now = datetime.utcnow()
        remaining = self.expires_at(retention) - now
        return max(0, int(remaining.total_seconds() * 1000))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "store_key": self.store_key,
            "original_name": self.original_name,
            "mime_type": self.mime_type,
            "size": self.size,
            "public_url": self.public_url,
            "object_url": self.object_url,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FileRecord':
        """Create FileRecord from dictionary."""
        return cls(
            id=data["id"],
            store_key=data["store_key"],
            original_name=data["original_name"],
            mime_type=data["mime_type"],
            size=int(data["size"]),
            public_url=data["public_url"],
            created_at=datetime.fromisoformat(data["created_at"]),
            object_url=data.get("object_url"),
        )

    @classmethod
    def create(cls, store_key: str, original_name: str, mime_type: str, size: int,
               public_url: str, created_at: Optional[datetime] = None,
               object_url: Optional[str] = None) -> 'FileRecord':
        """
        Factory method for a record that has not been inserted yet.

        The id is left unset; the metadata store assigns it on insert.

        Args:
            store_key: Key of the stored object
            original_name: Uploaded file name
            mime_type: MIME type of the upload
            size: Size in bytes
            public_url: Shareable address derived from the store key
            created_at: Creation timestamp (defaults to the current UTC time)
            object_url: Storage-native location of the object

        Returns:
            New FileRecord instance without an id
        """
        return cls(
            id=None,
            store_key=store_key,
            original_name=original_name,
            mime_type=mime_type,
            size=size,
            public_url=public_url,
            created_at=created_at or datetime.utcnow(),
            object_url=object_url,
        )
