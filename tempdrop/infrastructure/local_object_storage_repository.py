"""
Local Object Storage Repository Implementation

Concrete implementation of IObjectStorageRepository for the local filesystem.
Used for development, single-host deployments and tests. Keys map to paths
relative to a base directory.
"""

import logging
import os
from itertools import islice
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

from tempdrop.domain.errors import TransientStoreError
from tempdrop.domain.object_storage.storage_repository import (
    IObjectStorageRepository,
    StoredObject,
)

logger = logging.getLogger(__name__)


class LocalObjectStorageRepository(IObjectStorageRepository):
    """
    Local filesystem implementation of IObjectStorageRepository.

    Thread Safety:
        Safe for concurrent operations on distinct keys, which is all the
        upload path and the reconciliation sweep ever do.

    Attributes:
        base_path: Base directory holding every object
        base_url: Optional URL prefix objects are served from
        page_size: Number of keys produced per listing page
    """

    def __init__(self, base_path: str = "/tmp/tempdrop", base_url: Optional[str] = None,
                 page_size: int = 1000):
        """
        Initialize the local object storage repository.

        Args:
            base_path: Base directory for object storage (default: /tmp/tempdrop)
            base_url: URL prefix objects are served from (default: file:// URIs)
            page_size: Keys per listing page
        """
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/") if base_url else None
        self.page_size = page_size
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create storage directory: {self.base_path}") from e

    def _resolve(self, key: str) -> Path:
        """Map a key to a path, refusing keys that escape the base directory."""
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        full_path = (self.base_path / key).resolve()
        if self.base_path.resolve() not in full_path.parents:
            raise ValueError(f"key escapes storage root: {key}")
        return full_path

    def _url_for(self, key: str, full_path: Path) -> str:
        if self.base_url:
            return f"{self.base_url}/{key}"
        return full_path.as_uri()

    def put(self, key: str, content: BinaryIO,
            content_type: str = "application/octet-stream") -> StoredObject:
        """Write content to <base_path>/<key> in 8KB chunks."""
        full_path = self._resolve(key)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)

            if hasattr(content, "seek"):
                content.seek(0)

            with open(full_path, "wb") as f:
                while True:
                    chunk = content.read(8192)
                    if not chunk:
                        break
                    f.write(chunk)
        except OSError as e:
            raise TransientStoreError(f"Failed to save object {key}: {e}", e) from e

        return StoredObject(key=key, url=self._url_for(key, full_path))

    def list_keys(self, prefix: str) -> Iterator[str]:
        """Yield keys under prefix in sorted order, one page at a time."""
        keys = iter(self._walk_keys())
        while True:
            page = self._next_page(keys)
            if not page:
                return
            for key in page:
                if key.startswith(prefix):
                    yield key

    def _walk_keys(self) -> Iterator[str]:
        try:
            for root, dirs, files in os.walk(self.base_path, onerror=_raise):
                dirs.sort()
                for name in sorted(files):
                    full_path = Path(root) / name
                    yield full_path.relative_to(self.base_path).as_posix()
        except OSError as e:
            raise TransientStoreError(f"Failed to list {self.base_path}: {e}", e) from e

    def _next_page(self, keys: Iterator[str]) -> List[str]:
        return list(islice(keys, self.page_size))

    def delete(self, key: str) -> bool:
        """Remove the file for key; False if it was already gone."""
        full_path = self._resolve(key)

        try:
            full_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise TransientStoreError(f"Failed to delete object {key}: {e}", e) from e

    def exists(self, key: str) -> bool:
        """Check whether key is stored as a regular file."""
        try:
            return self._resolve(key).is_file()
        except ValueError:
            return False

    def health_check(self) -> bool:
        """Check that the storage root is a writable directory."""
        return self.base_path.is_dir() and os.access(self.base_path, os.W_OK)


def _raise(error: OSError) -> None:
    raise error
