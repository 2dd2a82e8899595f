"""
Reconciliation Domain

Stateless sweep that removes objects whose file record has expired.
"""

from .entities import ReconciliationReport
from .services import OrphanReconciler

__all__ = [
    "OrphanReconciler",
    "ReconciliationReport",
]
