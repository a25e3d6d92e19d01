"""Pytest configuration and shared fixtures."""

from typing import Any

import httpx
import pytest

from plugin_catalog.domain.plugin import PluginEntry
from tests.factories import CATALOG_URL, make_entry


@pytest.fixture
def alpha_beta() -> list[PluginEntry]:
    """Two entries that differ by name and author."""
    return [make_entry("Alpha", "X"), make_entry("beta", "Y")]


@pytest.fixture
def raw_catalog() -> list[dict[str, Any]]:
    """Raw catalog manifests in published (oldest first) order."""
    return [
        {
            "name": "Hide Channels",
            "description": "Hide channels you don't need",
            "authors": [{"name": "Alice", "id": "1001"}],
            "main": "index.js",
            "hash": "abc123",
            "vendetta": {"original": "https://alice.github.io/plugins/HideChannels/", "icon": "ic_hide"},
        },
        {
            "name": "Message Logger",
            "description": "Keeps deleted messages",
            "authors": [{"name": "Bob"}],
            "main": "index.js",
            "hash": "def456",
            "vendetta": {"original": "bob.github.io/MessageLogger/"},
        },
        {
            "name": "Translate",
            "description": "Translate messages",
            "authors": [{"name": "Carol"}, {"name": "Dave", "id": "2002"}],
            "main": "index.js",
            "hash": "789abc",
            "vendetta": {"original": "https://carol.dev/translate/"},
        },
    ]


@pytest.fixture
def catalog_transport(raw_catalog: list[dict[str, Any]]) -> httpx.MockTransport:
    """Transport serving the raw catalog at the catalog URL."""

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == CATALOG_URL:
            return httpx.Response(200, json=raw_catalog)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def failing_transport() -> httpx.MockTransport:
    """Transport answering every request with a server error."""
    return httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
