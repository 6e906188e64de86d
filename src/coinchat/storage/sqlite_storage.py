"""SQLite-backed key/value storage for the holdings ledger.

One row per key in ``kv_store``; values are opaque strings (the portfolio
store writes JSON). The connection runs in WAL mode so a save never blocks
a concurrent read.
"""

import os
import time
from typing import Self

import aiosqlite

from coinchat.logging import get_logger
from coinchat.storage.base import KeyValueStorage

logger = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL  -- epoch milliseconds
);
"""

_UPSERT = (
    "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at"
)


class SqliteStorage(KeyValueStorage):
    """Persist string values by key in a single SQLite file.

    Open it with ``connect()`` / ``close()`` or as an async context manager:

        async with SqliteStorage("data/coinchat.db") as storage:
            await storage.save("crypto-chat-portfolio", "[]")
    """

    def __init__(self, db_path: str = "data/coinchat.db") -> None:
        self._path = db_path
        self._conn: aiosqlite.Connection | None = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("SqliteStorage is not open; call connect() first")
        return self._conn

    async def connect(self) -> None:
        """Open the database file, creating its directory and table as needed."""
        parent = os.path.dirname(self._path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        conn = await aiosqlite.connect(self._path)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.executescript(_SCHEMA)
        await conn.commit()
        self._conn = conn

        logger.info("storage_connected", db_path=self._path)

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info("storage_closed", db_path=self._path)

    async def load(self, key: str) -> str | None:
        async with self.connection.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        return None if row is None else row[0]

    async def save(self, key: str, value: str) -> None:
        await self.connection.execute(_UPSERT, (key, value, int(time.time() * 1000)))
        await self.connection.commit()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
