"""Plugin catalog loading and normalization."""

import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import urljoin

import httpx

from plugin_catalog.core.config import constants
from plugin_catalog.core.errors import CatalogLoadError, classify_catalog_error
from plugin_catalog.core.fuzzy_match import DEFAULT_THRESHOLD, SearchIndex
from plugin_catalog.core.logging import span
from plugin_catalog.domain.plugin import PluginEntry, ResourceState


logger = logging.getLogger(__name__)


async def fetch_catalog(client: httpx.AsyncClient, url: str) -> list[dict[str, Any]]:
    """Fetch the raw catalog JSON array.

    Raises:
        httpx.HTTPError: On transport failures and non-2xx responses
        ValueError: If the body is not a JSON array
    """
    response = await client.get(url)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array from {url}, got {type(data).__name__}")
    return data


def normalize_catalog(raw: Sequence[dict[str, Any]], base_url: str) -> list[PluginEntry]:
    """Turn raw manifests into entries, newest first.

    The catalog is append-only, so it is reversed; each manifest's
    ``vendetta.original`` link is resolved against ``base_url``.

    Raises:
        KeyError: If a manifest has no ``vendetta.original`` link
        pydantic.ValidationError: If a manifest is missing required fields
    """
    entries = []
    for manifest in reversed(raw):
        vendetta = manifest["vendetta"]
        entries.append(
            PluginEntry.model_validate(
                {
                    **manifest,
                    "url": urljoin(base_url, vendetta["original"]),
                    "icon": vendetta.get("icon"),
                }
            )
        )
    return entries


class CatalogResource:
    """Catalog collection observed through a pending / ready / errored state.

    The loaded entries are shared read-only; a search index over them is
    built once per load.
    """

    def __init__(
        self,
        url: str,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.threshold = threshold
        self._transport = transport
        self.state = ResourceState.PENDING
        self.entries: Sequence[PluginEntry] = ()
        self.error: CatalogLoadError | None = None
        self._index: SearchIndex | None = None

    async def _fetch_entries(self) -> list[PluginEntry]:
        try:
            async with httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS, transport=self._transport) as client:
                raw = await fetch_catalog(client, self.url)
            return normalize_catalog(raw, self.url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, TypeError) as e:
            raise CatalogLoadError(f"Failed to load catalog from {self.url}: {e}") from e

    async def load(self) -> None:
        """Fetch and normalize the catalog.

        Failures are recorded on the resource as CatalogLoadError; nothing is retried.
        """
        self.state = ResourceState.PENDING
        self.error = None

        with span("catalog_service.load"):
            try:
                entries = await self._fetch_entries()
            except CatalogLoadError as e:
                self.error = e
                self.state = ResourceState.ERRORED
                response = classify_catalog_error(e)
                logger.error("catalog_load_failed", extra={"url": self.url, "code": response.code, "error": str(e)})
                return

        self.entries = entries
        self._index = SearchIndex(entries, threshold=self.threshold)
        self.state = ResourceState.READY
        logger.info("catalog_loaded", extra={"url": self.url, "entries": len(entries)})

    async def reload(self) -> None:
        """Discard the current collection and load it again."""
        self.entries = ()
        self._index = None
        await self.load()

    def search(self, query: str) -> Sequence[PluginEntry]:
        """Search the loaded entries; empty until the catalog is ready."""
        if self._index is None:
            return ()
        return self._index.search(query)
