"""
Preferences - durable key/value storage for per-screen UI choices.

Usage:
    prefs = SqlitePreferences("prefs.db")
    await prefs.connect()
    await prefs.set("applications:view-mode", "table")
    mode = await prefs.get("applications:view-mode")
    await prefs.close()

Values are plain strings with no expiry. Callers scope keys per screen.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);
"""


@runtime_checkable
class Preferences(Protocol):
    """Key -> string storage contract."""

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...


class MemoryPreferences:
    """Process-local preferences. Lost on exit."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqlitePreferences:
    """Preferences persisted in a SQLite file."""

    def __init__(self, path: str):
        self._path = Path(path)
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get database connection."""
        if not self._connection:
            raise RuntimeError("Preferences not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> "SqlitePreferences":
        """Open the database and create the table if needed."""
        if self._connection is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.executescript(SCHEMA)
            await self._connection.commit()
            logger.debug(f"Preferences opened at {self._path}")
        return self

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def get(self, key: str) -> Optional[str]:
        cursor = await self.conn.execute("SELECT value FROM preferences WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        await self.conn.execute(
            """INSERT OR REPLACE INTO preferences (key, value, updated_at)
               VALUES (?, ?, datetime('now'))""",
            (key, value),
        )
        await self.conn.commit()
