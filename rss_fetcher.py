"""
rss_fetcher.py — Per-feed fetch and parse
==========================================
Fetches one RSS feed, turns every channel/item into an Entry and hands each
one to the store. Any network, HTTP or XML problem is logged and the feed
contributes nothing for that cycle.

Usage:
    from rss_fetcher import FeedFetcher

    fetcher = FeedFetcher(store)
    entries = fetcher.fetch("https://feeds.bbci.co.uk/news/world/rss.xml")
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

import requests

from models import Entry

log = logging.getLogger("rss_fetcher")

HEADERS = {
    "User-Agent": "rss-news/1.0",
    "Accept": "application/rss+xml, application/xml, text/xml, */*",
}


class FeedParseError(Exception):
    """Response body is not well-formed XML."""


def _chardata(parent, tag: str) -> str:
    """Direct character data of parent/<tag>, skipping nested elements' own text."""
    el = parent.find(tag)
    if el is None:
        return ""
    parts = [el.text or ""]
    for child in el:
        parts.append(child.tail or "")
    return "".join(parts)


def parse_rss_xml(raw: bytes) -> List[Entry]:
    """Parse RSS 2.0 XML into entries.

    Items are read from every <channel> child of the root, in document order.
    Missing fields become empty strings; text is kept verbatim. No <channel>
    means no entries.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise FeedParseError(str(e)) from e

    entries = []
    for channel in root.findall("channel"):
        for item_el in channel.findall("item"):
            entries.append(Entry(
                title=_chardata(item_el, "title"),
                description=_chardata(item_el, "description"),
                link=_chardata(item_el, "link"),
                pub_date=_chardata(item_el, "pubDate"),
            ))
    return entries


class FeedFetcher:
    """Fetches a FeedSource and appends its entries to the store.

    timeout=None leaves requests without a deadline, so a source that never
    answers holds its fetch open indefinitely.
    """

    def __init__(self, store, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.store = store
        self.session = session
        self.timeout = timeout

    def _http_get(self, url: str) -> requests.Response:
        if self.session is not None:
            return self.session.get(url, headers=HEADERS, timeout=self.timeout)
        return requests.get(url, headers=HEADERS, timeout=self.timeout)

    def fetch(self, source: str) -> List[Entry]:
        try:
            resp = self._http_get(source)
        except requests.RequestException as e:
            log.warning("Error fetching URL %s: %s", source, e)
            return []

        if not 200 <= resp.status_code < 300:
            log.warning("Error fetching URL %s: HTTP %s", source, resp.status_code)
            return []

        try:
            entries = parse_rss_xml(resp.content)
        except FeedParseError as e:
            log.warning("Error parsing feed %s: %s", source, e)
            return []

        stored = 0
        for entry in entries:
            if self.store.append(entry):
                stored += 1
        log.info("Fetched %s: %d items, %d stored", source, len(entries), stored)
        return entries
