"""
Storage Factory

Factory for creating the object storage repository selected by configuration.
The application layer depends only on IObjectStorageRepository and never on
a specific backend.
"""

import logging
from typing import Optional

from tempdrop.config.storage_config import StorageConfig
from tempdrop.domain.object_storage.storage_repository import IObjectStorageRepository
from tempdrop.infrastructure.local_object_storage_repository import LocalObjectStorageRepository

logger = logging.getLogger(__name__)


class StorageFactory:
    """
    Factory for creating object storage repository implementations.

    Selection Logic:
    - STORAGE_BACKEND set: use that backend ("local", "gcs" or "s3")
    - GCS_BUCKET_NAME set: use Google Cloud Storage
    - AWS_S3_BUCKET_NAME set: use Amazon S3
    - Otherwise: local filesystem storage

    A misconfigured cloud backend raises instead of falling back to local
    storage.
    """

    @staticmethod
    def create_storage(config: Optional[StorageConfig] = None) -> IObjectStorageRepository:
        """
        Create storage repository based on configuration.

        Args:
            config: Storage configuration, uses default if None

        Returns:
            IObjectStorageRepository implementation

        Raises:
            ValueError: If the backend name is unknown or a bucket is missing
            RuntimeError: If storage initialization fails
        """
        if config is None:
            config = StorageConfig()

        backend = config.resolve_backend()

        if backend == "gcs":
            return StorageFactory._create_gcs_storage(config)
        if backend == "s3":
            return StorageFactory._create_s3_storage(config)
        if backend == "local":
            return StorageFactory._create_local_storage(config)

        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")

    @staticmethod
    def _create_local_storage(config: StorageConfig) -> IObjectStorageRepository:
        try:
            storage = LocalObjectStorageRepository(
                config.storage_dir,
                base_url=config.local_base_url,
                page_size=config.list_page_size,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e

        logger.info(f"Storage factory: Using local filesystem storage at {config.storage_dir}")
        return storage

    @staticmethod
    def _create_gcs_storage(config: StorageConfig) -> IObjectStorageRepository:
        if not config.gcs_bucket_name:
            raise ValueError("GCS_BUCKET_NAME cannot be empty")

        from google.cloud import storage
        from tempdrop.infrastructure.gcs_object_storage_repository import GCSObjectStorageRepository

        try:
            if config.gcs_credentials_path:
                client = storage.Client.from_service_account_json(config.gcs_credentials_path)
            else:
                client = storage.Client()

            repository = GCSObjectStorageRepository(
                config.gcs_bucket_name,
                client=client,
                timeout=config.call_timeout,
                page_size=config.list_page_size,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize GCS storage: {e}") from e

        logger.info(f"Storage factory: Using GCS storage with bucket {config.gcs_bucket_name}")
        return repository

    @staticmethod
    def _create_s3_storage(config: StorageConfig) -> IObjectStorageRepository:
        if not config.s3_bucket_name:
            raise ValueError("AWS_S3_BUCKET_NAME cannot be empty")

        from tempdrop.infrastructure.s3_object_storage_repository import S3ObjectStorageRepository

        try:
            repository = S3ObjectStorageRepository(
                config.s3_bucket_name,
                region=config.aws_region,
                timeout=config.call_timeout,
                page_size=config.list_page_size,
                endpoint_url=config.s3_endpoint_url,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize S3 storage: {e}") from e

        logger.info(f"Storage factory: Using S3 storage with bucket {config.s3_bucket_name}")
        return repository
