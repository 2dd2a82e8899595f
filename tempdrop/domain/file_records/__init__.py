"""
File Records Domain

Handles uploaded file metadata, store key generation and registration.
"""

from .entities import FileRecord
from .repositories import FileRecordRepository
from .services import RecordRegistrar
from .value_objects import StoreKey

__all__ = [
    "FileRecord",
    "FileRecordRepository",
    "RecordRegistrar",
    "StoreKey",
]
