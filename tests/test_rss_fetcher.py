"""
tests/test_rss_fetcher.py — Fetch and parse one feed
=====================================================
Network/HTTP/XML failures yield zero entries; good items are stored as-is.

Run: pytest tests/test_rss_fetcher.py -v
"""

import os
import sys
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db import FeedStore
from models import Entry
from rss_fetcher import FeedFetcher, FeedParseError, parse_rss_xml

FEED_URL = "https://news.example.com/rss.xml"

FOUR_ITEMS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example</title>
    <item>
      <title>First</title><description>One</description>
      <link>https://news.example.com/1</link><pubDate>Mon, 06 May 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second</title><description>Two</description>
      <link>https://news.example.com/2</link><pubDate>Mon, 06 May 2024 11:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Third</title><description><![CDATA[<p>Three</p>]]></description>
      <link>https://news.example.com/3</link><pubDate>Mon, 06 May 2024 12:00:00 GMT</pubDate>
    </item>
    <item>
      <description>No title here</description>
      <link>https://news.example.com/4</link><pubDate>Mon, 06 May 2024 13:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


def _response(status=200, content=FOUR_ITEMS):
    r = requests.Response()
    r.status_code = status
    r._content = content
    r.url = FEED_URL
    return r


class FakeSession:
    """Maps URL -> Response or exception instance."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, timeout))
        result = self.routes[url]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def store(tmp_path):
    s = FeedStore(str(tmp_path / "rss.db"))
    s.initialize()
    return s


# ═══════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════

def test_parse_three_good_items_and_one_missing_title():
    entries = parse_rss_xml(FOUR_ITEMS)
    assert len(entries) == 4
    assert entries[3].title == ""
    assert entries[3].description == "No title here"
    assert entries[0] == Entry("First", "One", "https://news.example.com/1", "Mon, 06 May 2024 10:00:00 GMT")


def test_parse_keeps_cdata_markup_verbatim():
    entries = parse_rss_xml(FOUR_ITEMS)
    assert entries[2].description == "<p>Three</p>"


def test_parse_item_with_no_fields_is_kept():
    raw = b"<rss><channel><item/></channel></rss>"
    assert parse_rss_xml(raw) == [Entry("", "", "", "")]


def test_parse_does_not_trim_text():
    raw = b"<rss><channel><item><title>  padded  </title></item></channel></rss>"
    assert parse_rss_xml(raw)[0].title == "  padded  "


def test_parse_without_channel_yields_nothing():
    raw = b"<feed xmlns='http://www.w3.org/2005/Atom'><entry><title>x</title></entry></feed>"
    assert parse_rss_xml(raw) == []


def test_parse_ignores_items_outside_channel():
    raw = b"<rss><item><title>stray</title></item><channel></channel></rss>"
    assert parse_rss_xml(raw) == []


def test_parse_keeps_direct_text_around_nested_elements():
    raw = b"<rss><channel><item><title>A <b>B</b> C</title></item></channel></rss>"
    assert parse_rss_xml(raw)[0].title == "A  C"


def test_parse_collects_items_from_every_channel():
    raw = (b"<rss><channel><item><title>one</title></item></channel>"
           b"<channel><item><title>two</title></item><item><title>three</title></item></channel></rss>")
    assert [e.title for e in parse_rss_xml(raw)] == ["one", "two", "three"]


@pytest.mark.parametrize("raw", [b"", b"<rss><channel><item>", b"not xml at all", b"<html><body></html>"])
def test_parse_malformed_raises(raw):
    with pytest.raises(FeedParseError):
        parse_rss_xml(raw)


# ═══════════════════════════════════════════
# FETCH
# ═══════════════════════════════════════════

def test_fetch_stores_every_item(store):
    fetcher = FeedFetcher(store, session=FakeSession({FEED_URL: _response()}))

    entries = fetcher.fetch(FEED_URL)

    assert len(entries) == 4
    assert store.count() == 4
    titles = sorted(e.title for e in store.query_recent(10))
    assert titles == ["", "First", "Second", "Third"]


def test_fetch_connection_error_yields_nothing(store, caplog):
    session = FakeSession({FEED_URL: requests.ConnectionError("connection refused")})
    fetcher = FeedFetcher(store, session=session)

    assert fetcher.fetch(FEED_URL) == []
    assert store.count() == 0
    assert "Error fetching URL" in caplog.text


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_fetch_non_2xx_yields_nothing(store, status):
    fetcher = FeedFetcher(store, session=FakeSession({FEED_URL: _response(status=status)}))
    assert fetcher.fetch(FEED_URL) == []
    assert store.count() == 0


def test_fetch_malformed_body_yields_nothing(store, caplog):
    fetcher = FeedFetcher(store, session=FakeSession({FEED_URL: _response(content=b"<rss><chan")}))
    assert fetcher.fetch(FEED_URL) == []
    assert store.count() == 0
    assert "Error parsing feed" in caplog.text


def test_fetch_unreachable_address_does_not_raise(store):
    # Real socket: nothing listens on port 1.
    fetcher = FeedFetcher(store, timeout=5)
    assert fetcher.fetch("http://127.0.0.1:1/rss.xml") == []


def test_fetch_has_no_timeout_by_default(store):
    # A source that never answers holds the fetch open; hardening is opt-in.
    session = FakeSession({FEED_URL: _response()})
    FeedFetcher(store, session=session).fetch(FEED_URL)
    assert session.calls == [(FEED_URL, None)]


def test_fetch_passes_configured_timeout(store):
    session = FakeSession({FEED_URL: _response()})
    FeedFetcher(store, session=session, timeout=7.5).fetch(FEED_URL)
    assert session.calls == [(FEED_URL, 7.5)]


def test_fetch_continues_after_a_failed_write(store):
    store_double = MagicMock()
    store_double.append.side_effect = [True, False, True, True]
    fetcher = FeedFetcher(store_double, session=FakeSession({FEED_URL: _response()}))

    entries = fetcher.fetch(FEED_URL)

    assert len(entries) == 4
    assert store_double.append.call_count == 4


def test_fetch_twice_inserts_duplicates(store):
    fetcher = FeedFetcher(store, session=FakeSession({FEED_URL: _response()}))
    fetcher.fetch(FEED_URL)
    fetcher.fetch(FEED_URL)
    assert store.count() == 8
