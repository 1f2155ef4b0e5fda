"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest


# Define paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
BACKEND_SRC = PROJECT_ROOT / "backend" / "src"

# Add backend/src to sys.path
if str(BACKEND_SRC) not in sys.path:
    sys.path.insert(0, str(BACKEND_SRC))

# Fake Supabase project so configuration is complete without a .env file
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from fastapi.testclient import TestClient  # noqa: E402

from api.dependencies import (  # noqa: E402
    AuthContext,
    get_auth_context,
    get_expenses_service,
    get_notifications_service,
    get_projects_service,
    get_settings_service,
    reset_services,
)


TEST_USER_ID = "9870edb5-2741-4c0a-b5cd-494a498f7485"
TEST_EMAIL = "freelancer@example.com"


async def _override_auth() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID, access_token="test-token", email=TEST_EMAIL)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Drop the cached ``get_config()`` so each test sees its own environment."""
    from config.settings import get_config

    get_config.cache_clear()
    yield
    get_config.cache_clear()


# ============================================================================
# Supabase fakes
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder chains back to itself."""
    client = Mock()

    table_mock = Mock()
    client.table.return_value = table_mock

    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.in_.return_value = table_mock
    table_mock.order.return_value = table_mock

    execute_mock = Mock()
    execute_mock.data = []
    table_mock.execute.return_value = execute_mock

    return client


@pytest.fixture
def queue_results(mock_supabase_client):
    """Queue successive ``.execute().data`` payloads on the mocked client."""

    def _queue(*results):
        table_mock = mock_supabase_client.table.return_value
        table_mock.execute.side_effect = [Mock(data=data) for data in results]
        return table_mock

    return _queue


# ============================================================================
# API fixtures
# ============================================================================

@pytest.fixture
def app():
    from main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    reset_services()


@pytest.fixture
def projects_service():
    return Mock()


@pytest.fixture
def expenses_service():
    return Mock()


@pytest.fixture
def settings_service():
    return Mock()


@pytest.fixture
def notifications_service():
    return Mock()


@pytest.fixture
def client(app, projects_service, expenses_service, settings_service, notifications_service):
    """Authenticated test client with every storage service mocked."""
    app.dependency_overrides[get_auth_context] = _override_auth
    app.dependency_overrides[get_projects_service] = lambda: projects_service
    app.dependency_overrides[get_expenses_service] = lambda: expenses_service
    app.dependency_overrides[get_settings_service] = lambda: settings_service
    app.dependency_overrides[get_notifications_service] = lambda: notifications_service
    return TestClient(app)


@pytest.fixture
def anonymous_client(app):
    """Test client without any auth override."""
    return TestClient(app)


# ============================================================================
# Sample rows
# ============================================================================

@pytest.fixture
def project_row():
    return {
        "id": "ab5743df-c763-472b-98a0-d45548c4c5ce",
        "user_id": TEST_USER_ID,
        "title": "Brand refresh",
        "client": "Acme Studio",
        "description": None,
        "start_date": "2025-01-01",
        "due_date": "2025-01-31",
        "budget": 1000,
        "hourly_rate": 50,
        "hours_worked": 10,
        "status": "in-progress",
        "completion_percentage": 40,
        "category": "Graphic Design",
        "created_at": "2025-01-01T09:00:00+00:00",
        "updated_at": "2025-01-02T09:00:00+00:00",
    }


@pytest.fixture
def expense_row(project_row):
    return {
        "id": "5f1e2d3c-0000-4000-8000-000000000001",
        "project_id": project_row["id"],
        "user_id": TEST_USER_ID,
        "description": "Stock photos",
        "amount": 120.5,
        "date": "2025-01-10",
        "category": None,
        "created_at": "2025-01-10T12:00:00+00:00",
        "updated_at": None,
    }
