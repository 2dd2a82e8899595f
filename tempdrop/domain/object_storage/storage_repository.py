"""
Object Storage Repository Interface

Abstract interface for object storage operations.
This abstraction keeps the domain layer infrastructure-agnostic: the
registrar and the reconciliation sweep only see keys, streams and URLs,
never a specific cloud SDK.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful object write."""
    key: str
    url: str


class IObjectStorageRepository(ABC):
    """
    Unified interface for object storage operations.

    Contract Guarantees:
    - Keys are opaque strings relative to the bucket or storage root
    - list_keys() yields every key under the prefix, across all pages
    - A failure while paging is raised to the caller, never swallowed
    - delete() distinguishes "deleted" from "already gone"

    Timeouts:
    - Every remote call carries a bounded timeout
    - Timeouts and network errors surface as TransientStoreError
    """

    @abstractmethod
    def put(self, key: str, content: BinaryIO,
            content_type: str = "application/octet-stream") -> StoredObject:
        """
        Store an object.

        Args:
            key: Object key (e.g., 'uploads/1700000000000-ab12.png')
            content: Binary content as a file-like object
            content_type: MIME type recorded with the object

        Returns:
            StoredObject with the key and storage-native URL

        Raises:
            TransientStoreError: If the write fails
            ValueError: If key is empty
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_keys(self, prefix: str) -> Iterator[str]:
        """
        Lazily enumerate every key under a prefix.

        Pages are fetched on demand. The iterator raises TransientStoreError
        from whichever page fails; callers that need a complete listing must
        consume the iterator fully before acting on it.

        Args:
            prefix: Namespace prefix (e.g., 'uploads/')

        Yields:
            Object keys starting with prefix
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete an object.

        Args:
            key: Object key

        Returns:
            True if the object was deleted, False if it did not exist

        Raises:
            TransientStoreError: If the delete fails for any other reason
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Returns:
            True if the object exists, False otherwise

        Raises:
            TransientStoreError: If the store cannot be reached
        """
        pass  # pragma: no cover

    def health_check(self) -> bool:
        """
        Check that the store is reachable.

        Returns:
            True if healthy; backends without a cheap probe report True
        """
        return True
