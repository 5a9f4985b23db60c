"""
db.py — RSS Entry Store
========================
Append-only SQLite persistence for feed entries, plus the ordered
"most recent N" read behind /api/news/<count>.

Usage:
    from db import FeedStore

    store = FeedStore("./rss.db")
    store.initialize()
    store.append(entry)
    latest = store.query_recent(10)

Ordering is SQLite text comparison on the stored pubDate, exactly as the
feed wrote it. Feeds that use different date formats will not interleave
chronologically.
"""

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import List

from models import Entry

log = logging.getLogger("db")

# SQLite LIMIT is a signed 64-bit integer.
MAX_LIMIT = 2 ** 63 - 1

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS rss (
    id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
    title TEXT,
    description TEXT,
    link TEXT,
    pubDate TEXT
)
"""

INSERT_SQL = "INSERT INTO rss (title, description, link, pubDate) VALUES (?, ?, ?, ?)"

SELECT_RECENT_SQL = """
SELECT title, description, link, pubDate FROM rss
ORDER BY pubDate DESC, id DESC
LIMIT ?
"""


class StoreError(Exception):
    """Storage could not be opened, initialized or read."""


class FeedStore:
    """Handle on the entry database.

    One connection per call; writes are serialized by a lock so concurrent
    fetch threads can append without coordinating with each other.
    """

    def __init__(self, path: str, timeout: float = 30.0):
        self.path = str(path)
        self.timeout = timeout
        self._write_lock = threading.Lock()

    def get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def db_connection(self):
        """Context manager for a single connection.

        Usage:
            with store.db_connection() as conn:
                conn.execute(...)
                conn.commit()
        """
        conn = self.get_conn()
        try:
            yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Open the database and ensure the rss table. Safe to call multiple times."""
        try:
            parent = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(parent, exist_ok=True)
            with self._write_lock, self.db_connection() as conn:
                conn.execute(CREATE_TABLE_SQL)
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Cannot initialize store at {self.path}: {e}") from e
        log.info("[DB] Initialized (SQLite at %s)", self.path)

    def append(self, entry: Entry) -> bool:
        """Insert one entry. Failures are logged and reported as False, never raised."""
        try:
            with self._write_lock, self.db_connection() as conn:
                conn.execute(INSERT_SQL, (entry.title, entry.description, entry.link, entry.pub_date))
                conn.commit()
        except sqlite3.Error as e:
            log.error("Error inserting item %r: %s", entry.link, e)
            return False
        return True

    def query_recent(self, limit: int) -> List[Entry]:
        """Return up to `limit` entries, newest pubDate first."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError(f"limit must be a non-negative integer, got {limit!r}")
        if limit > MAX_LIMIT:
            raise ValueError(f"limit exceeds {MAX_LIMIT}")
        if limit == 0:
            return []

        try:
            with self.db_connection() as conn:
                rows = conn.execute(SELECT_RECENT_SQL, (limit,)).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return [Entry.from_row(row) for row in rows]

    def count(self) -> int:
        try:
            with self.db_connection() as conn:
                row = conn.execute("SELECT COUNT(*) AS n FROM rss").fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return int(row["n"])
