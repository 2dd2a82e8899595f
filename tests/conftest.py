"""
Shared pytest fixtures and configuration for the TempDrop test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Shared fixtures for clocks, records and in-memory repositories
- Automatic markers based on test location
"""

from datetime import datetime, timedelta

import pytest
from hypothesis import HealthCheck, Phase, settings

from tempdrop.domain.file_records.services import RecordRegistrar
from tempdrop.domain.reconciliation.services import OrphanReconciler
from tests.fixtures.mock_repositories import (
    FakeClock,
    MockFileRecordRepository,
    MockObjectStorageRepository,
)

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")

PREFIX = "uploads/"
RETENTION = timedelta(minutes=10)


# =============================================================================
# Time-related Fixtures
# =============================================================================

@pytest.fixture
def fixed_datetime():
    """Provide a fixed datetime for deterministic testing."""
    return datetime(2024, 1, 15, 12, 0, 0)


@pytest.fixture
def clock(fixed_datetime):
    """Provide a controllable clock starting at fixed_datetime."""
    return FakeClock(fixed_datetime)


@pytest.fixture
def retention():
    """Provide the default retention window."""
    return RETENTION


# =============================================================================
# Repository Fixtures
# =============================================================================

@pytest.fixture
def record_repository(clock, retention):
    """Provide an in-memory record repository sharing the test clock."""
    return MockFileRecordRepository(retention=retention, clock=clock)


@pytest.fixture
def object_storage():
    """Provide an in-memory object store with small listing pages."""
    return MockObjectStorageRepository(page_size=3)


# =============================================================================
# Domain Service Fixtures
# =============================================================================

@pytest.fixture
def registrar(record_repository, retention, clock):
    """Provide a RecordRegistrar wired to the in-memory repository."""
    return RecordRegistrar(record_repository, retention, clock=clock)


@pytest.fixture
def reconciler(object_storage, record_repository, clock):
    """Provide an OrphanReconciler with small batches to exercise chunking."""
    return OrphanReconciler(
        object_storage,
        record_repository,
        prefix=PREFIX,
        lookup_batch_size=2,
        max_workers=4,
        clock=clock,
    )


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (wire real components together)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
