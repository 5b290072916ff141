"""
Pytest configuration and shared fixtures for the projection engine tests.
"""

import pytest

from finance_engine import create_app
from finance_engine.config import reset_global_settings
from finance_engine.models.time_grid import YearMonth


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Provide the settings the app factory requires and reset the cached instance."""
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("APP_ENV", "testing")
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def app():
    """Create an application instance for testing."""
    return create_app()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def start_month():
    """A fixed "now" so projections are reproducible."""
    return YearMonth(year=2024, month=1)
