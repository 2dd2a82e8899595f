"""
Google Cloud Storage Repository Implementation

Concrete implementation of IObjectStorageRepository for Google Cloud Storage.
Uses the google-cloud-storage library; every call carries a timeout and
GCS errors are raised as TransientStoreError.
"""

import logging
from typing import BinaryIO, Iterator, Optional

from google.cloud import storage
from google.cloud.exceptions import NotFound

from tempdrop.domain.errors import TransientStoreError
from tempdrop.domain.object_storage.storage_repository import (
    IObjectStorageRepository,
    StoredObject,
)

logger = logging.getLogger(__name__)


class GCSObjectStorageRepository(IObjectStorageRepository):
    """
    Google Cloud Storage implementation of IObjectStorageRepository.

    Thread Safety:
        This implementation is thread-safe. The GCS client handles concurrent
        operations safely.

    Attributes:
        bucket_name: Name of the GCS bucket for object storage
        client: Google Cloud Storage client instance
        bucket: GCS bucket object
        timeout: Per-call timeout in seconds
        page_size: Blobs requested per listing page
    """

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None,
                 timeout: float = 10.0, page_size: int = 1000):
        """
        Initialize the GCS object storage repository.

        Args:
            bucket_name: Name of the GCS bucket to use for storage
            client: Preconfigured client (default: storage.Client() with ambient credentials)
            timeout: Per-call timeout in seconds
            page_size: Blobs requested per listing page

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.timeout = timeout
        self.page_size = page_size

    def put(self, key: str, content: BinaryIO,
            content_type: str = "application/octet-stream") -> StoredObject:
        """Upload content as blob <key>."""
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        try:
            blob = self.bucket.blob(key)

            if hasattr(content, "seek"):
                content.seek(0)

            blob.upload_from_file(content, content_type=content_type, timeout=self.timeout)
            return StoredObject(key=key, url=blob.public_url)

        except Exception as e:
            raise TransientStoreError(f"Failed to upload {key} to GCS: {e}", e) from e

    def list_keys(self, prefix: str) -> Iterator[str]:
        """Yield blob names under prefix, page by page."""
        try:
            iterator = self.client.list_blobs(
                self.bucket_name,
                prefix=prefix,
                page_size=self.page_size,
                timeout=self.timeout,
            )
            for page in iterator.pages:
                for blob in page:
                    yield blob.name
        except Exception as e:
            raise TransientStoreError(f"Failed to list gs://{self.bucket_name}/{prefix}: {e}", e) from e

    def delete(self, key: str) -> bool:
        """Delete blob <key>; False if it did not exist."""
        try:
            self.bucket.blob(key).delete(timeout=self.timeout)
            return True
        except NotFound:
            return False
        except Exception as e:
            raise TransientStoreError(f"Failed to delete {key} from GCS: {e}", e) from e

    def exists(self, key: str) -> bool:
        """Check if blob <key> exists."""
        try:
            return self.bucket.blob(key).exists(timeout=self.timeout)
        except Exception as e:
            raise TransientStoreError(f"Failed to check {key} in GCS: {e}", e) from e

    def health_check(self) -> bool:
        """Check that the bucket is reachable."""
        try:
            return self.bucket.exists(timeout=self.timeout)
        except Exception as e:
            logger.warning(f"GCS health check failed: {e}")
            return False
