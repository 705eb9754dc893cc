"""SQLite key/value store backend.

Provides durable collection storage using a SQLite database file.
Uses aiosqlite for async access.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from ..errors import PersistenceError
from .base import KeyValueStore


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed key/value store.

    One row per key; the value column holds the JSON text of the whole
    collection.
    """

    def __init__(self, path: str | Path = "./nexus_store.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            await self._connection.commit()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot open store at {self._db_path}: {e}") from e

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise PersistenceError("Store is not connected")
        return self._connection

    async def get(self, key: str) -> Any | None:
        conn = self._require_connection()
        try:
            async with conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read '{key}': {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value under '{key}': {e}") from e

    async def set(self, key: str, value: Any) -> None:
        conn = self._require_connection()
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for '{key}' is not serializable: {e}") from e

        now = datetime.now(timezone.utc).isoformat()
        try:
            await conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, raw, now))
            await conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write '{key}': {e}") from e

    async def delete(self, key: str) -> None:
        conn = self._require_connection()
        try:
            await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete '{key}': {e}") from e

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
