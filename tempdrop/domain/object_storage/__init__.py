"""
Object Storage Domain

Storage-agnostic contract for the object store holding uploaded files.
"""

from .storage_repository import IObjectStorageRepository, StoredObject

__all__ = [
    "IObjectStorageRepository",
    "StoredObject",
]
