"""Tests for the live query store and its shareable location."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from plugin_catalog.core.errors import PersistedStateDecodeError
from plugin_catalog.services.query_state_service import (
    QueryState,
    QueryStateStore,
    ShareableLocation,
    decode_query,
    encode_query,
)


DEBOUNCE = 0.02
PAGE_URL = "http://127.0.0.1:8000/"


def make_store(url: str = PAGE_URL) -> QueryStateStore:
    return QueryStateStore(ShareableLocation(url), debounce_seconds=DEBOUNCE)


@pytest.mark.unit
class TestQueryEncoding:
    """Percent-encoding of queries in the fragment."""

    @pytest.mark.parametrize(
        "query",
        ["", "hello world", "a#b", "100%", "'exact | ^prefix", "café \U0001f600", "a/b?c=d&e", "  "],
    )
    def test_decode_reverses_encode(self, query: str) -> None:
        assert decode_query(encode_query(query)) == query

    def test_encode_escapes_reserved_characters(self) -> None:
        assert encode_query("a b#c%d&e/f") == "a%20b%23c%25d%26e%2Ff"

    def test_decode_percent_escapes(self) -> None:
        assert decode_query("hello%20world") == "hello world"

    def test_decode_keeps_plus_sign(self) -> None:
        assert decode_query("a+b") == "a+b"

    @pytest.mark.parametrize("raw", ["%zz", "abc%", "%4", "%E0%A4%A", "%FF"])
    def test_decode_rejects_malformed_input(self, raw: str) -> None:
        with pytest.raises(PersistedStateDecodeError):
            decode_query(raw)


@pytest.mark.unit
class TestShareableLocation:
    """Fragment handling on the page location."""

    def test_splits_fragment(self) -> None:
        location = ShareableLocation("http://host/page#abc")

        assert location.base_url == "http://host/page"
        assert location.fragment == "abc"
        assert location.href == "http://host/page#abc"

    def test_replace_does_not_grow_history(self) -> None:
        location = ShareableLocation("http://host/page")

        location.replace_fragment("one")
        location.replace_fragment("two")

        assert location.href == "http://host/page#two"
        assert location.history_length == 1


@pytest.mark.unit
class TestInitialize:
    """Restoring the query at startup."""

    def test_restores_decoded_fragment(self) -> None:
        store = make_store(f"{PAGE_URL}#hello%20world")

        assert store.initialize() == "hello world"
        assert store.query == "hello world"
        assert store.state == QueryState.IDLE

    def test_empty_fragment_gives_empty_query(self) -> None:
        store = make_store()

        assert store.initialize() == ""

    def test_malformed_fragment_falls_back_to_empty_query(self) -> None:
        store = make_store(f"{PAGE_URL}#%E0%A4%A")

        with patch("plugin_catalog.services.query_state_service.logger") as mock_logger:
            assert store.initialize() == ""

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[0][0] == "query_state_decode_failed"

    def test_initialize_does_not_write_location(self) -> None:
        store = make_store(f"{PAGE_URL}#hello%20world")
        store.initialize()

        assert store.location.href == f"{PAGE_URL}#hello%20world"


@pytest.mark.unit
class TestSetQuery:
    """Live updates and debounced persistence."""

    async def test_query_is_visible_immediately(self) -> None:
        store = make_store()
        store.initialize()

        store.set_query("alpha")

        assert store.query == "alpha"
        assert store.state == QueryState.EDITING
        assert store.location.fragment == ""

    async def test_rapid_updates_produce_one_write_with_final_value(self) -> None:
        store = make_store()
        store.initialize()
        writes: list[str] = []
        original = store.location.replace_fragment
        store.location.replace_fragment = lambda fragment: (writes.append(fragment), original(fragment))[1]

        for value in ("h", "he", "hel", "hello w", "hello world"):
            store.set_query(value)
        await asyncio.sleep(DEBOUNCE * 5)

        assert writes == ["hello%20world"]
        assert store.location.href == f"{PAGE_URL}#hello%20world"
        assert store.state == QueryState.IDLE

    async def test_write_replaces_history_entry(self) -> None:
        store = make_store()
        store.initialize()

        store.set_query("one")
        await asyncio.sleep(DEBOUNCE * 5)
        store.set_query("two")
        await asyncio.sleep(DEBOUNCE * 5)

        assert store.location.fragment == "two"
        assert store.location.history_length == 1

    async def test_setting_same_value_is_noop(self) -> None:
        store = make_store(f"{PAGE_URL}#same")
        store.initialize()
        subscriber = MagicMock()
        store.subscribe(subscriber)

        store.set_query("same")

        subscriber.assert_not_called()
        assert store.state == QueryState.IDLE

    async def test_shareable_url_tracks_live_query(self) -> None:
        store = make_store()
        store.initialize()

        store.set_query("a b")

        assert store.shareable_url == f"{PAGE_URL}#a%20b"

    async def test_flush_writes_pending_value(self) -> None:
        store = make_store()
        store.initialize()

        store.set_query("pending")
        store.flush()

        assert store.location.fragment == "pending"
        assert store.state == QueryState.IDLE


@pytest.mark.unit
class TestSubscribe:
    """Change notifications."""

    async def test_subscriber_receives_every_value(self) -> None:
        store = make_store()
        store.initialize()
        received: list[str] = []
        store.subscribe(received.append)

        store.set_query("a")
        store.set_query("ab")

        assert received == ["a", "ab"]

    async def test_unsubscribe_stops_notifications(self) -> None:
        store = make_store()
        store.initialize()
        received: list[str] = []
        unsubscribe = store.subscribe(received.append)

        store.set_query("a")
        unsubscribe()
        store.set_query("ab")

        assert received == ["a"]

    async def test_close_flushes_and_drops_subscribers(self) -> None:
        store = make_store()
        store.initialize()
        received: list[str] = []
        store.subscribe(received.append)

        store.set_query("last")
        store.close()

        assert store.location.fragment == "last"
        assert store._subscribers == []


@pytest.mark.unit
class TestRestore:
    """Replacing the live query from a bookmarked fragment."""

    async def test_restore_decodes_fragment(self) -> None:
        store = make_store()
        store.initialize()

        assert store.restore("a+b%20c") == "a+b c"
        assert store.state == QueryState.EDITING

    async def test_restore_malformed_fragment_gives_empty_query(self) -> None:
        store = make_store()
        store.initialize()
        store.set_query("previous")

        with patch("plugin_catalog.services.query_state_service.logger") as mock_logger:
            assert store.restore("%E0%A4%A") == ""

        mock_logger.warning.assert_called_once()
        store.flush()
        assert store.location.href == PAGE_URL


@pytest.mark.unit
async def test_failing_subscriber_does_not_block_persistence() -> None:
    """The write is scheduled before subscribers run."""
    store = make_store()
    store.initialize()
    store.subscribe(MagicMock(side_effect=RuntimeError("subscriber failed")))

    with pytest.raises(RuntimeError):
        store.set_query("kept")
    await asyncio.sleep(DEBOUNCE * 5)

    assert store.location.fragment == "kept"
    assert store.state == QueryState.IDLE
