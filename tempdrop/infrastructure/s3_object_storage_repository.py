"""
Amazon S3 Repository Implementation

Concrete implementation of IObjectStorageRepository for Amazon S3 (and
S3-compatible endpoints). Uses boto3 with connect/read timeouts configured
through botocore; S3 errors are raised as TransientStoreError.
"""

import logging
from typing import BinaryIO, Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tempdrop.domain.errors import TransientStoreError
from tempdrop.domain.object_storage.storage_repository import (
    IObjectStorageRepository,
    StoredObject,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStorageRepository(IObjectStorageRepository):
    """
    Amazon S3 implementation of IObjectStorageRepository.

    Thread Safety:
        boto3 clients are thread-safe; one client is shared by the upload path
        and the reconciliation workers.

    Attributes:
        bucket_name: Name of the S3 bucket
        region: AWS region of the bucket
        client: boto3 S3 client
        page_size: Keys requested per ListObjectsV2 page
    """

    def __init__(self, bucket_name: str, region: str = "us-east-1", client=None,
                 timeout: float = 10.0, page_size: int = 1000,
                 endpoint_url: Optional[str] = None):
        """
        Initialize the S3 object storage repository.

        Args:
            bucket_name: Name of the S3 bucket
            region: AWS region
            client: Preconfigured boto3 S3 client (default: built from the environment)
            timeout: Connect and read timeout in seconds
            page_size: Keys requested per listing page
            endpoint_url: Custom endpoint for S3-compatible stores

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.region = region
        self.page_size = page_size
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 2},
            ),
        )

    def _object_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def put(self, key: str, content: BinaryIO,
            content_type: str = "application/octet-stream") -> StoredObject:
        """Upload content as object <key>."""
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        try:
            if hasattr(content, "seek"):
                content.seek(0)

            self.client.upload_fileobj(
                content,
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
            return StoredObject(key=key, url=self._object_url(key))

        except (BotoCoreError, ClientError) as e:
            raise TransientStoreError(f"Failed to upload {key} to S3: {e}", e) from e

    def list_keys(self, prefix: str) -> Iterator[str]:
        """Yield object keys under prefix using the ListObjectsV2 paginator."""
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=self.bucket_name,
                Prefix=prefix,
                PaginationConfig={"PageSize": self.page_size},
            )
            for page in pages:
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (BotoCoreError, ClientError) as e:
            raise TransientStoreError(f"Failed to list s3://{self.bucket_name}/{prefix}: {e}", e) from e

    def delete(self, key: str) -> bool:
        """
        Delete object <key>; False if it did not exist.

        S3 deletes are idempotent and do not report missing keys, so the
        object is probed first.
        """
        if not self.exists(key):
            return False

        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            raise TransientStoreError(f"Failed to delete {key} from S3: {e}", e) from e

    def exists(self, key: str) -> bool:
        """Check if object <key> exists (HEAD)."""
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return False
            raise TransientStoreError(f"Failed to check {key} in S3: {e}", e) from e
        except BotoCoreError as e:
            raise TransientStoreError(f"Failed to check {key} in S3: {e}", e) from e

    def health_check(self) -> bool:
        """Check that the bucket is reachable."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"S3 health check failed: {e}")
            return False
