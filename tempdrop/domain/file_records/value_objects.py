"""
File Record Value Objects

Immutable value objects for type safety and validation.
"""

import os
import secrets
import time
from dataclasses import dataclass
from typing import Optional

from tempdrop.domain.errors import InvalidStoreKeyError


@dataclass(frozen=True)
class StoreKey:
    """
    Value object representing a validated object store key.

    The store key is the join key between the object store and the metadata
    store. Generated keys follow ``<prefix><epoch-millis>-<random><ext>`` so
    that two uploads never share a key.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidStoreKeyError(f"Invalid store key: {self.value!r}")

    def _is_valid(self) -> bool:
        """
        Validate store key.

        Requirements:
        - Must be a non-empty string
        - Must not start with a slash
        - Must not contain '..' path segments
        """
        if not self.value or not isinstance(self.value, str):
            return False

        if self.value.startswith("/"):
            return False

        return ".." not in self.value.split("/")

    @classmethod
    def generate(cls, prefix: str, original_name: Optional[str] = None,
                 now_ms: Optional[int] = None) -> 'StoreKey':
        """
        Generate a new unique store key under a prefix.

        Args:
            prefix: Managed namespace prefix (e.g. 'uploads/')
            original_name: Uploaded file name, used for the extension
            now_ms: Epoch milliseconds (defaults to the current time)

        Returns:
            New StoreKey instance
        """
        if now_ms is None:
            now_ms = int(time.time() * 1000)

        extension = cls._safe_extension(original_name)
        unique_suffix = f"{now_ms}-{secrets.token_hex(8)}"
        return cls(f"{prefix}{unique_suffix}{extension}")

    @staticmethod
    def _safe_extension(original_name: Optional[str]) -> str:
        """Extract a lowercase alphanumeric extension from a file name."""
        if not original_name:
            return ""

        _, extension = os.path.splitext(os.path.basename(original_name))
        extension = extension.lower()
        if len(extension) < 2 or not extension[1:].isalnum():
            return ""
        return extension[:16]

    def __str__(self) -> str:
        return self.value
