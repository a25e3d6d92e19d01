"""Pytest configuration and fixtures for integration tests."""

from collections.abc import Generator
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from plugin_catalog.core.config import Settings
from plugin_catalog.main import app
from plugin_catalog.services.catalog_service import CatalogResource
from plugin_catalog.services.clipboard_service import ClipboardService
from plugin_catalog.services.query_state_service import QueryStateStore, ShareableLocation
from plugin_catalog.services.session_service import CatalogSession
from tests.factories import CATALOG_URL, DEBOUNCE_SECONDS, PAGE_URL, RecordingClipboardWriter


@pytest.fixture
def clipboard_writer() -> RecordingClipboardWriter:
    return RecordingClipboardWriter()


@pytest.fixture
def start_location() -> str:
    """Location the session restores its query from."""
    return PAGE_URL


@pytest.fixture
def transport(catalog_transport: httpx.MockTransport) -> httpx.MockTransport:
    """Transport the session fetches the catalog through."""
    return catalog_transport


@pytest.fixture
def client(
    transport: httpx.MockTransport,
    clipboard_writer: RecordingClipboardWriter,
    start_location: str,
) -> Generator[TestClient, None, None]:
    """Test client whose session loads the catalog from a mock transport."""

    def create_test_session(_settings: Settings) -> CatalogSession:
        return CatalogSession(
            catalog=CatalogResource(CATALOG_URL, transport=transport),
            query_store=QueryStateStore(ShareableLocation(start_location), debounce_seconds=DEBOUNCE_SECONDS),
            clipboard=ClipboardService(clipboard_writer, None),
        )

    with (
        patch("plugin_catalog.main.configure_logfire"),
        patch("plugin_catalog.main.instrument_httpx"),
        patch("plugin_catalog.main.create_session", side_effect=create_test_session),
        TestClient(app) as test_client,
    ):
        test_client.portal.call(app.state.session.wait_until_loaded)
        yield test_client


@pytest.fixture
def session(client: TestClient) -> CatalogSession:
    return client.app.state.session
