"""SQLite backend implementation."""

import asyncio
import json
from pathlib import Path
from typing import Any

import aiosqlite

from ..config import resolve_db_path
from ..errors import SerializationError, StorageIOError


class SQLiteBackend:
    """SQLite key/value backend. One instance can be shared by all agents."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Open the database and create tables."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()

        try:
            self._conn = await aiosqlite.connect(self._db_path)
            await self._conn.executescript(schema_sql)
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self.close()
            raise StorageIOError(f"Cannot open database {self._db_path}: {e}") from e

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise StorageIOError("Storage not initialized")
        return self._conn

    async def store(self, key: str, value: Any) -> None:
        conn = self._require_conn()
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode value for {key}: {e}") from e

        async with self._lock:
            try:
                await conn.execute(
                    """
                    INSERT OR REPLACE INTO state_entries (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key, encoded),
                )
                await conn.commit()
            except aiosqlite.Error as e:
                raise StorageIOError(f"Failed to store {key}: {e}") from e

    async def retrieve(self, key: str) -> Any | None:
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(
                    "SELECT value FROM state_entries WHERE key = ?",
                    (key,),
                )
                row = await cursor.fetchone()
            except aiosqlite.Error as e:
                raise StorageIOError(f"Failed to retrieve {key}: {e}") from e

        if not row:
            return None
        try:
            return json.loads(row[0])
        except ValueError as e:
            raise SerializationError(f"Corrupt value for {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        conn = self._require_conn()
        async with self._lock:
            try:
                cursor = await conn.execute(
                    "DELETE FROM state_entries WHERE key = ?",
                    (key,),
                )
                await conn.commit()
            except aiosqlite.Error as e:
                raise StorageIOError(f"Failed to delete {key}: {e}") from e
        return cursor.rowcount > 0

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        conn = self._require_conn()
        async with self._lock:
            try:
                if prefix is None:
                    cursor = await conn.execute("SELECT key FROM state_entries")
                else:
                    # substr comparison avoids LIKE wildcards in agent ids
                    cursor = await conn.execute(
                        """
                        SELECT key FROM state_entries
                        WHERE substr(key, 1, ?) = ?
                        """,
                        (len(prefix), prefix),
                    )
                rows = await cursor.fetchall()
            except aiosqlite.Error as e:
                raise StorageIOError(f"Failed to list keys: {e}") from e

        return [row[0] for row in rows]

    async def clear(self) -> None:
        conn = self._require_conn()
        async with self._lock:
            try:
                await conn.execute("DELETE FROM state_entries")
                await conn.commit()
            except aiosqlite.Error as e:
                raise StorageIOError(f"Failed to clear: {e}") from e
