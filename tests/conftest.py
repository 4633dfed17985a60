"""
Pytest configuration and fixtures.
Every test runs against a fresh store seeded from the bundled fixture files.
"""

from datetime import date
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from hr_admin.asset_workflow import AssetWorkflow
from hr_admin.data_access import DataAccessLayer
from hr_admin.leave_workflow import LeaveWorkflow
from hr_admin.store import RecordStore
from hr_admin.training_workflow import TrainingWorkflow

# Reference date the fixture maintenance windows are laid out around
TODAY = date(2024, 3, 1)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def fixture_access():
    """Data access layer reading only the bundled JSON fixtures."""
    return DataAccessLayer(primary=None)


@pytest.fixture
def store(fixture_access):
    """Fresh record store per test so workflow mutations never leak."""
    return RecordStore.from_data_access(fixture_access)


@pytest.fixture
def leave_workflow(store):
    return LeaveWorkflow(store, clock=lambda: TODAY)


@pytest.fixture
def asset_workflow(store):
    return AssetWorkflow(store)


@pytest.fixture
def training_workflow(store):
    return TrainingWorkflow(store, clock=lambda: TODAY)


@pytest.fixture
def mock_snowflake_session():
    """Mock Snowflake session."""
    session = Mock()
    session.table = Mock()
    return session


@pytest.fixture
def test_client(store):
    """FastAPI test client wired to the per-test store and a fixed clock."""
    from hr_admin.main import app, get_clock, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: (lambda: TODAY)
    yield TestClient(app)
    app.dependency_overrides.clear()
