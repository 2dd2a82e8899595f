"""
Event Publisher

Application service for publishing domain events to registered handlers.
Enables decoupling of side effects from core business logic.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from tempdrop.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Event publisher that dispatches domain events to registered handlers.

    Handlers subscribed to a base class receive every subclass event, so a
    handler subscribed to DomainEvent sees everything. Dispatch is
    synchronous. Handler exceptions are caught and logged to prevent side
    effects from breaking core business logic.

    Thread-safe for concurrent event publishing.
    """

    def __init__(self):
        """Initialize EventPublisher with empty handler registry."""
        self._handlers: Dict[Type[DomainEvent], List[Callable[[DomainEvent], None]]] = {}
        self._lock = Lock()

    def subscribe(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: The type of domain event to handle
            handler: Callable that accepts the event as parameter

        Example:
            publisher = EventPublisher()
            publisher.subscribe(OrphanObjectDeletedEvent, handle_orphan_deleted)
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            logger.debug(
                f"Registered handler {getattr(handler, '__name__', handler)} for {event_type.__name__}"
            )

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all handlers registered for its type or a base type.

        Args:
            event: The domain event to publish
        """
        with self._lock:
            handlers = [
                handler
                for event_type, registered in self._handlers.items()
                if isinstance(event, event_type)
                for handler in registered
            ]

        if not handlers:
            logger.debug(f"No handlers registered for {type(event).__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Log but don't fail - side effects should not break core logic
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {type(event).__name__}: {e}",
                    exc_info=True
                )
