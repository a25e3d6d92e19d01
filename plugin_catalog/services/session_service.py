"""Browsing session: the catalog, the live query and the clipboard for one UI."""

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from plugin_catalog.core.config import Settings
from plugin_catalog.domain.plugin import PluginEntry
from plugin_catalog.services.catalog_service import CatalogResource
from plugin_catalog.services.clipboard_service import ClipboardService, create_clipboard_service
from plugin_catalog.services.query_state_service import QueryStateStore, ShareableLocation


logger = logging.getLogger(__name__)


@dataclass
class CatalogSession:
    """Explicitly owned state shared by the view for the lifetime of the app."""

    catalog: CatalogResource
    query_store: QueryStateStore
    clipboard: ClipboardService
    _load_task: asyncio.Task[None] | None = field(default=None, repr=False)

    def results(self) -> Sequence[PluginEntry]:
        """Entries matching the live query, in display order."""
        return self.catalog.search(self.query_store.query)

    async def start(self) -> None:
        """Restore the query and start loading the catalog in the background."""
        self.query_store.initialize()
        self._load_task = asyncio.create_task(self.catalog.load())
        logger.info("session_started", extra={"catalog_url": self.catalog.url})

    async def wait_until_loaded(self) -> None:
        """Wait for the initial catalog load to settle (ready or errored)."""
        if self._load_task is not None:
            await self._load_task

    async def close(self) -> None:
        """Persist any pending query and abandon an unfinished initial load."""
        self.query_store.close()
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._load_task
        logger.info("session_closed")


def create_session(settings: Settings) -> CatalogSession:
    """Build a session from settings."""
    return CatalogSession(
        catalog=CatalogResource(settings.catalog_url, threshold=settings.fuzzy_threshold),
        query_store=QueryStateStore(
            ShareableLocation(settings.start_location),
            debounce_seconds=settings.query_debounce_seconds,
        ),
        clipboard=create_clipboard_service(settings),
    )
