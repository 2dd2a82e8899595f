"""Infrastructure layer for Redis and object storage backends."""

from .local_object_storage_repository import LocalObjectStorageRepository
from .redis_file_record_repository import RedisFileRecordRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .storage_factory import StorageFactory

__all__ = [
    'LocalObjectStorageRepository',
    'RedisConnectionManager',
    'RedisFileRecordRepository',
    'RedisRepository',
    'StorageFactory',
]
