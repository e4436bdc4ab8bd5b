"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient

from imagehandler.core.drivers import DriverSettings


@pytest.fixture(scope="function")
def client(tmp_path):
    """
    Create a test client with initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from imagehandler.main import app

    app.state.driver_settings = DriverSettings()
    app.state.storage_root = tmp_path.resolve()
    app.state.config = {"environment": "test"}

    # Create test client (no context manager so lifespan settings are not applied)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client
