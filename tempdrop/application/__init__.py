"""
Application Layer

Orchestrates domain services for the upload workflow and the orphaned object
sweep.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .reconciliation_service import LocalCycleGuard, ReconciliationService, RedisCycleGuard
from .sweep_scheduler import SweepScheduler
from .upload_service import UploadService

__all__ = [
    'DependencyContainer',
    'DependencyNotFoundError',
    'EventPublisher',
    'LocalCycleGuard',
    'ReconciliationService',
    'RedisCycleGuard',
    'SweepScheduler',
    'UploadService',
]
