"""
Celery Configuration

Configures Celery with Flask integration, Redis broker, task routing and the
beat schedule that drives the reconciliation sweep.
"""

import os

from celery import Celery
from kombu import Queue

from tempdrop.config.retention_config import RetentionConfig

RECONCILE_TASK_NAME = "tempdrop.tasks.reconcile_orphaned_objects"


class CeleryConfig:
    """Celery configuration settings."""

    # Broker settings
    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Task settings
    task_serializer = "json"
    accept_content = ["json"]
    result_serializer = "json"
    timezone = "UTC"
    enable_utc = True

    # Worker settings
    worker_prefetch_multiplier = 1
    task_acks_late = False
    worker_max_tasks_per_child = 100

    # Task routing
    task_routes = {
        RECONCILE_TASK_NAME: {"queue": "reconcile_queue"},
    }

    # Queue definitions
    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue("reconcile_queue", routing_key="reconcile"),
    )

    # A sweep that overruns its soft limit is abandoned; the next one starts over
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 240))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 300))

    # Result backend settings
    result_expires = 3600  # 1 hour

    worker_concurrency = int(os.getenv("CELERY_WORKER_CONCURRENCY", 2))


def build_beat_schedule(retention_config: RetentionConfig) -> dict:
    """
    Build the beat schedule for the reconciliation sweep.

    Queued sweeps expire after one interval so a slow worker drops stale
    runs instead of stacking them.

    Args:
        retention_config: Retention and sweep settings

    Returns:
        Celery beat_schedule mapping
    """
    interval = retention_config.sweep_interval_seconds
    return {
        "reconcile-orphaned-objects": {
            "task": RECONCILE_TASK_NAME,
            "schedule": interval,
            "options": {"expires": interval},
        },
    }


def make_celery(app, retention_config: RetentionConfig = None):
    """
    Create Celery instance with Flask app context.

    Args:
        app: Flask application instance
        retention_config: Retention and sweep settings, uses default if None

    Returns:
        Configured Celery instance
    """
    if retention_config is None:
        retention_config = RetentionConfig()

    celery = Celery(
        app.import_name,
        backend=CeleryConfig.result_backend,
        broker=CeleryConfig.broker_url,
    )

    celery.config_from_object(CeleryConfig)
    celery.conf.beat_schedule = build_beat_schedule(retention_config)

    class ContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
