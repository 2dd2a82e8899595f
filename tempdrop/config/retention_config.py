"""
Retention Configuration

Settings for the retention window and the reconciliation sweep.
"""

import os
from datetime import timedelta


class RetentionConfig:
    """Retention and sweep configuration settings."""

    def __init__(self):
        self.retention_seconds = int(os.getenv("RETENTION_SECONDS", 600))
        self.sweep_interval_seconds = float(os.getenv("SWEEP_INTERVAL_SECONDS", 60))
        self.managed_prefix = os.getenv("MANAGED_PREFIX", "uploads/")
        self.public_base_url = os.getenv("PUBLIC_BASE_URL") or None

        # Sweep tuning
        self.sweep_max_workers = int(os.getenv("SWEEP_MAX_WORKERS", 8))
        self.lookup_batch_size = int(os.getenv("LOOKUP_BATCH_SIZE", 100))
        self.sweep_lock_timeout = int(os.getenv("SWEEP_LOCK_TIMEOUT", 300))
        self.sweep_grace_period_seconds = float(os.getenv("SWEEP_GRACE_PERIOD_SECONDS", 30))

        # Upper bound on how long an object write may take before its key
        # reservation lapses and the sweep may collect the object
        self.upload_reservation_seconds = int(os.getenv("UPLOAD_RESERVATION_SECONDS", 300))

        # "celery" runs the sweep from Celery beat, "thread" runs it in-process
        self.sweeper_mode = os.getenv("SWEEPER_MODE", "celery").lower()

        self.validate()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If a value is out of range
        """
        if self.retention_seconds <= 0:
            raise ValueError("RETENTION_SECONDS must be positive")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be positive")
        if not self.managed_prefix:
            raise ValueError("MANAGED_PREFIX cannot be empty")
        if self.sweep_max_workers < 1:
            raise ValueError("SWEEP_MAX_WORKERS must be at least 1")
        if self.lookup_batch_size < 1:
            raise ValueError("LOOKUP_BATCH_SIZE must be at least 1")
        if self.upload_reservation_seconds <= 0:
            raise ValueError("UPLOAD_RESERVATION_SECONDS must be positive")
        if self.sweeper_mode not in ("celery", "thread"):
            raise ValueError(f"Unknown SWEEPER_MODE: {self.sweeper_mode}")

    @property
    def retention(self) -> timedelta:
        """Retention window as a timedelta."""
        return timedelta(seconds=self.retention_seconds)

    @property
    def upload_reservation(self) -> timedelta:
        """Key reservation window for in-flight uploads as a timedelta."""
        return timedelta(seconds=self.upload_reservation_seconds)

    def public_url_for(self, key: str, fallback: str) -> str:
        """
        Derive the shareable address for a store key.

        Args:
            key: Store key of the object
            fallback: Storage-native URL used when no public base URL is set

        Returns:
            '<PUBLIC_BASE_URL>/<key>' or fallback
        """
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        return fallback
