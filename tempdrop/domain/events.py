"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, notifications) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event
            (a record id, a store key or a sweep prefix)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class FileRegisteredEvent(DomainEvent):
    """
    Event emitted when an upload has been stored and registered.

    Attributes:
        aggregate_id: Record ID
        store_key: Key of the stored object
        expires_at: When the record and its public link expire
    """
    store_key: str
    expires_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "store_key": self.store_key,
            "expires_at": self.expires_at.isoformat(),
        })
        return base_dict


@dataclass(frozen=True)
class RegistrationFailedEvent(DomainEvent):
    """
    Event emitted when an object was stored but could not be registered.

    Attributes:
        aggregate_id: Store key of the object
        error_message: Why registration failed
        rolled_back: Whether the object write was undone
    """
    error_message: str
    rolled_back: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "error_message": self.error_message,
            "rolled_back": self.rolled_back,
        })
        return base_dict


@dataclass(frozen=True)
class OrphanObjectDeletedEvent(DomainEvent):
    """
    Event emitted when the sweep deletes an object with no live record.

    Attributes:
        aggregate_id: Store key of the deleted object
    """
    pass


@dataclass(frozen=True)
class ReconciliationCompletedEvent(DomainEvent):
    """
    Event emitted when a sweep cycle finishes.

    Attributes:
        aggregate_id: Managed prefix
        report: Cycle statistics (ReconciliationReport.to_dict())
    """
    report: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({"report": dict(self.report)})
        return base_dict


@dataclass(frozen=True)
class ReconciliationAbortedEvent(DomainEvent):
    """
    Event emitted when a sweep cycle aborts before deleting anything.

    Attributes:
        aggregate_id: Managed prefix
        error_message: Why the cycle aborted
    """
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({"error_message": self.error_message})
        return base_dict


@dataclass(frozen=True)
class ReconciliationSkippedEvent(DomainEvent):
    """
    Event emitted when a sweep is skipped because another one is running.

    Attributes:
        aggregate_id: Managed prefix
    """
    pass
