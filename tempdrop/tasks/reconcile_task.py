"""
Reconcile Task

Celery beat task that deletes stored objects whose file record has expired.
Thin wrapper that delegates to ReconciliationService.
"""

import logging

from celery.exceptions import SoftTimeLimitExceeded

from celery_app import celery_app
from tempdrop.config.celery_config import RECONCILE_TASK_NAME

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name=RECONCILE_TASK_NAME)
def reconcile_orphaned_objects(self):
    """
    Periodic sweep of the managed prefix.

    Runs once per sweep interval (configured in the Celery beat schedule).
    Overlapping runs are prevented by the service's distributed lock: a run
    that finds the lock held returns immediately with skipped=True. Messages
    that sat in the queue longer than one interval expire instead of piling
    up behind a slow cycle.

    Returns:
        dict: Reconciliation report with 'skipped' and 'aborted' flags
    """
    logger.info("Starting reconciliation task")

    try:
        # Services come from the DependencyContainer, never instantiated here
        from celery_app import flask_app
        from tempdrop.application.reconciliation_service import ReconciliationService

        service = flask_app.container.resolve(ReconciliationService)
        result = service.run_sweep()

        if not result.get("skipped") and not result.get("aborted"):
            logger.info(
                f"Reconciliation completed - Listed: {result.get('listed')}, "
                f"Deleted: {result.get('deleted')}, "
                f"Unchecked: {result.get('unchecked')}, "
                f"Failed: {result.get('failed')}"
            )
        return result

    except SoftTimeLimitExceeded:
        logger.warning("Reconciliation task hit its soft time limit, next cycle will resume")
        return {"skipped": False, "aborted": True, "deleted": 0, "errors": ["soft time limit exceeded"]}

    except Exception as e:
        error_msg = f"Reconciliation task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {"skipped": False, "aborted": True, "deleted": 0, "errors": [error_msg]}
