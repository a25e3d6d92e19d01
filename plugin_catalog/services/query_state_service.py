"""Live search query with a debounced, shareable URL-fragment mirror."""

import logging
import re
from collections.abc import Callable
from enum import StrEnum
from urllib.parse import quote, unquote, urldefrag

from plugin_catalog.core.debounce import Debouncer
from plugin_catalog.core.errors import PersistedStateDecodeError
from plugin_catalog.core.logging import log_with_context


logger = logging.getLogger(__name__)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def encode_query(query: str) -> str:
    """Percent-encode a query for use as a URL fragment.

    Every character outside the unreserved set is escaped, so the result
    never contains ``#``, ``%`` or ``&`` literally.
    """
    return quote(query, safe="")


def decode_query(raw: str) -> str:
    """Decode a percent-encoded fragment back into a query.

    Raises:
        PersistedStateDecodeError: If an escape is truncated or the bytes are not UTF-8
    """
    if _MALFORMED_ESCAPE.search(raw):
        raise PersistedStateDecodeError(f"Malformed percent-escape in fragment: {raw!r}")
    try:
        return unquote(raw, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise PersistedStateDecodeError(f"Fragment is not valid UTF-8: {raw!r}") from e


class ShareableLocation:
    """Addressable page location whose fragment carries the shareable search.

    Updates replace the current entry; the history never grows.
    """

    def __init__(self, url: str) -> None:
        self.base_url, self.fragment = urldefrag(url)
        self._history: list[str] = [url]

    @property
    def href(self) -> str:
        return f"{self.base_url}#{self.fragment}" if self.fragment else self.base_url

    @property
    def history_length(self) -> int:
        return len(self._history)

    def replace_fragment(self, fragment: str) -> None:
        """Swap the fragment in place without adding a history entry."""
        self.fragment = fragment
        self._history[-1] = self.href


def _decode_or_empty(fragment: str) -> str:
    try:
        return decode_query(fragment)
    except PersistedStateDecodeError as e:
        logger.warning("query_state_decode_failed", extra={"error": str(e)})
        return ""


class QueryState(StrEnum):
    """Write state of the query store."""

    IDLE = "idle"
    EDITING = "editing"


QuerySubscriber = Callable[[str], None]


class QueryStateStore:
    """Owner and single writer of the live search query.

    Reads go straight to ``query``; changes are pushed to subscribers
    immediately and mirrored into the location fragment once input has been
    quiet for the debounce interval.
    """

    def __init__(self, location: ShareableLocation, *, debounce_seconds: float) -> None:
        self.location = location
        self.state = QueryState.IDLE
        self._query = ""
        self._subscribers: list[QuerySubscriber] = []
        self.debounce_seconds = debounce_seconds
        self._persist = Debouncer(self._write, debounce_seconds)

    @property
    def query(self) -> str:
        return self._query

    @property
    def shareable_url(self) -> str:
        """Link that restores the current query, whether or not it has been written yet."""
        encoded = encode_query(self._query)
        return f"{self.location.base_url}#{encoded}" if encoded else self.location.base_url

    def initialize(self) -> str:
        """Restore the query from the location fragment.

        A malformed fragment is logged and replaced by an empty query.

        Returns:
            The restored query
        """
        self._query = _decode_or_empty(self.location.fragment)
        self.state = QueryState.IDLE
        log_with_context(logger, "info", "query_state_initialized", query_length=len(self._query))
        return self._query

    def restore(self, fragment: str) -> str:
        """Replace the live query with one carried by a bookmarked fragment.

        The fragment is decoded the same way as on startup, so a malformed
        one falls back to an empty query.
        """
        self.set_query(_decode_or_empty(fragment))
        return self._query

    def set_query(self, value: str) -> None:
        """Update the live query and schedule the debounced fragment write.

        Must be called from the event loop thread. Setting the current value
        again is a no-op.
        """
        if value == self._query:
            return

        self._query = value
        self.state = QueryState.EDITING
        self._persist(value)
        for subscriber in list(self._subscribers):
            subscriber(value)

    def subscribe(self, callback: QuerySubscriber) -> Callable[[], None]:
        """Register a change callback.

        Returns:
            A function that removes the callback
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _write(self, value: str) -> None:
        self.location.replace_fragment(encode_query(value))
        self.state = QueryState.IDLE
        logger.debug("query_state_persisted", extra={"query_length": len(value)})

    def flush(self) -> None:
        """Write a pending query immediately instead of waiting for the timer."""
        self._persist.flush()

    def close(self) -> None:
        """Flush any pending write and drop all subscribers."""
        self.flush()
        self._subscribers.clear()
