"""
Reconciliation Entities

Per-cycle bookkeeping for the orphaned object sweep.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class ReconciliationReport:
    """
    Outcome of one reconciliation cycle.

    A report is built up while the cycle runs and is never persisted; each
    cycle starts from an empty report.
    """
    prefix: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    listed: int = 0
    live: int = 0
    orphaned: int = 0
    deleted: int = 0
    already_gone: int = 0
    unchecked: int = 0
    failed: int = 0
    abandoned: bool = False
    deleted_keys: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def finish(self, now: Optional[datetime] = None) -> 'ReconciliationReport':
        """Stamp the end of the cycle."""
        self.finished_at = now or datetime.utcnow()
        return self

    def get_duration_seconds(self) -> Optional[float]:
        """Get cycle duration, or None while the cycle is still running."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "prefix": self.prefix,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.get_duration_seconds(),
            "listed": self.listed,
            "live": self.live,
            "orphaned": self.orphaned,
            "deleted": self.deleted,
            "already_gone": self.already_gone,
            "unchecked": self.unchecked,
            "failed": self.failed,
            "abandoned": self.abandoned,
            "errors": list(self.errors),
        }
