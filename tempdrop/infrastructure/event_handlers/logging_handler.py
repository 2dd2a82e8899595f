"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Subscribes to domain events and logs them appropriately.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from tempdrop.domain.events import (
    DomainEvent,
    FileRegisteredEvent,
    OrphanObjectDeletedEvent,
    ReconciliationAbortedEvent,
    ReconciliationCompletedEvent,
    ReconciliationSkippedEvent,
    RegistrationFailedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, FileRegisteredEvent):
                self._handle_file_registered(event)
            elif isinstance(event, RegistrationFailedEvent):
                self._handle_registration_failed(event)
            elif isinstance(event, OrphanObjectDeletedEvent):
                self._handle_orphan_deleted(event)
            elif isinstance(event, ReconciliationCompletedEvent):
                self._handle_reconciliation_completed(event)
            elif isinstance(event, ReconciliationAbortedEvent):
                self._handle_reconciliation_aborted(event)
            elif isinstance(event, ReconciliationSkippedEvent):
                self._handle_reconciliation_skipped(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_file_registered(self, event: FileRegisteredEvent) -> None:
        self.logger.info(
            f"File registered: {event.aggregate_id} -> {event.store_key} "
            f"(expires {event.expires_at.isoformat()})"
        )

    def _handle_registration_failed(self, event: RegistrationFailedEvent) -> None:
        outcome = "object rolled back" if event.rolled_back else "object left for the sweep"
        self.logger.error(
            f"Registration failed for {event.aggregate_id}: {event.error_message} ({outcome})"
        )

    def _handle_orphan_deleted(self, event: OrphanObjectDeletedEvent) -> None:
        self.logger.info(f"Orphaned object deleted: {event.aggregate_id}")

    def _handle_reconciliation_completed(self, event: ReconciliationCompletedEvent) -> None:
        report = event.report
        self.logger.info(
            f"Reconciliation of '{event.aggregate_id}' completed - "
            f"Listed: {report.get('listed', 0)}, Live: {report.get('live', 0)}, "
            f"Deleted: {report.get('deleted', 0)}, Unchecked: {report.get('unchecked', 0)}, "
            f"Failed: {report.get('failed', 0)}"
        )

    def _handle_reconciliation_aborted(self, event: ReconciliationAbortedEvent) -> None:
        self.logger.error(
            f"Reconciliation of '{event.aggregate_id}' aborted: {event.error_message}"
        )

    def _handle_reconciliation_skipped(self, event: ReconciliationSkippedEvent) -> None:
        self.logger.info(
            f"Reconciliation of '{event.aggregate_id}' skipped: previous cycle still running"
        )
