"""
Local record store implementations.

MemoryRecordStore keeps blobs in a dict and is what tests and the
``memory`` backend use. SqliteRecordStore persists blobs to a single
SQLite table for the ``local`` backend.

Both expose the same narrow surface as the remote ledger: availability,
get by key, set by key. There is no way to list keys.
"""

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .errors import CommitFailed, CommitRejected, StoreError

logger = logging.getLogger(__name__)

# Message a wallet-style signer reports when the user declines a write
REJECTION_TEXT = "user rejected transaction"


class MemoryRecordStore:
    """
    In-process key -> bytes store.

    Every call yields to the event loop once before touching state, so
    concurrent callers interleave the way they would against a remote
    ledger (a read issued before a write completes sees the old value).

    Failure injection for tests:
        fail_on: keys whose writes raise CommitFailed
        reject_on: keys whose writes raise CommitRejected
        unreadable: keys whose reads raise StoreError
    """

    def __init__(
        self,
        data: Optional[dict[str, bytes]] = None,
        *,
        available: bool = True,
        fail_on: Iterable[str] = (),
        reject_on: Iterable[str] = (),
        unreadable: Iterable[str] = (),
    ):
        self._data: dict[str, bytes] = dict(data or {})
        self.available = available
        self.fail_on = set(fail_on)
        self.reject_on = set(reject_on)
        self.unreadable = set(unreadable)
        self.get_calls: list[str] = []
        self.set_calls: list[str] = []

    async def is_available(self) -> bool:
        await asyncio.sleep(0)
        return self.available

    async def get_data(self, key: str) -> bytes:
        await asyncio.sleep(0)
        self.get_calls.append(key)
        if key in self.unreadable:
            raise StoreError(f"Read failed for {key}")
        return self._data.get(key, b"")

    async def set_data(self, key: str, value: bytes) -> None:
        await asyncio.sleep(0)
        self.set_calls.append(key)
        if key in self.reject_on:
            raise CommitRejected(f"Write to {key} failed: {REJECTION_TEXT}")
        if key in self.fail_on:
            raise CommitFailed(f"Write to {key} failed")
        self._data[key] = bytes(value)

    def snapshot(self) -> dict[str, bytes]:
        """Copy of the stored blobs."""
        return dict(self._data)

    async def close(self) -> None:
        pass


class SqliteRecordStore:
    """
    SQLite-backed key -> bytes store.

    One table, one row per key. Writes replace the whole blob and bump
    updated_at; there is no history.
    """

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA busy_timeout=5000")

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def _now(self) -> str:
        """Current timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat()

    async def is_available(self) -> bool:
        return self._conn is not None

    async def get_data(self, key: str) -> bytes:
        if self._conn is None:
            raise StoreError("Store is closed")
        try:
            row = self._conn.execute(
                "SELECT value FROM records WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Read failed for {key}: {e}") from e
        if row is None:
            return b""
        return bytes(row[0])

    async def set_data(self, key: str, value: bytes) -> None:
        if self._conn is None:
            raise CommitFailed("Store is closed")
        try:
            self._conn.execute("""
                INSERT OR REPLACE INTO records (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, sqlite3.Binary(value), self._now()))
            self._conn.commit()
        except sqlite3.Error as e:
            raise CommitFailed(f"Write failed for {key}: {e}") from e
        logger.debug("Stored %s (%d bytes)", key, len(value))

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
