"""
Object Storage Configuration

Selects and configures the object storage backend.
"""

import os
from typing import Optional


class StorageConfig:
    """Object storage configuration settings."""

    def __init__(self):
        # "local", "gcs" or "s3"; empty means auto-detect from bucket settings
        self.backend = os.getenv("STORAGE_BACKEND", "").lower()

        # Local filesystem
        self.storage_dir = os.getenv("STORAGE_DIR", "/tmp/tempdrop")
        self.local_base_url: Optional[str] = os.getenv("LOCAL_STORAGE_BASE_URL") or None

        # Google Cloud Storage
        self.gcs_bucket_name: Optional[str] = os.getenv("GCS_BUCKET_NAME") or None
        self.gcs_credentials_path: Optional[str] = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None

        # Amazon S3
        self.s3_bucket_name: Optional[str] = os.getenv("AWS_S3_BUCKET_NAME") or None
        self.aws_region = os.getenv("AWS_REGION", "us-east-1")
        self.s3_endpoint_url: Optional[str] = os.getenv("S3_ENDPOINT_URL") or None

        # Shared
        self.list_page_size = int(os.getenv("LIST_PAGE_SIZE", 1000))
        self.call_timeout = float(os.getenv("STORE_CALL_TIMEOUT_SECONDS", 10))

    def resolve_backend(self) -> str:
        """
        Resolve which backend to use.

        Returns:
            The explicit STORAGE_BACKEND, else "gcs" if a GCS bucket is set,
            else "s3" if an S3 bucket is set, else "local"
        """
        if self.backend:
            return self.backend
        if self.gcs_bucket_name:
            return "gcs"
        if self.s3_bucket_name:
            return "s3"
        return "local"
