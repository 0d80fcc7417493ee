"""Shared pytest fixtures for hubdb-sync tests."""

from unittest.mock import Mock

import pytest

from hubdb_sync.config import Config

_ENV_VARS = (
    "HUBSPOT_PRIVATE_APP_TOKEN",
    "HUBDB_TABLE_ID",
    "HUBDB_API_URL",
    "CATALOG_API_URL",
    "HUBDB_PAGE_SIZE",
    "CATALOG_PAGE_SIZE",
    "HUBDB_SYNC_TIMEOUT",
    "HUBDB_SYNC_MAX_RETRIES",
    "HUBDB_SYNC_PRUNE",
    "HUBDB_SYNC_LOOKUP",
    "HUBDB_SYNC_DEBUG",
    "HUBDB_SYNC_CONFIG",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        token="test-token",
        table_id="1234",
        hubdb_url="https://api.example.com/cms/v3/hubdb",
        catalog_url="https://catalog.example.com/products",
        hubdb_page_size=2,
        catalog_page_size=2,
    )


@pytest.fixture
def mock_response():
    """Factory fixture for creating requests.Response mocks."""

    def _create_response(payload=None, status_code=200, text=""):
        response = Mock()
        response.status_code = status_code
        response.text = text
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        return response

    return _create_response
