"""Persistent key/value backends: in-memory and file-based."""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote, unquote

from ..errors import SerializationError, StorageIOError


class IStateBackend(Protocol):
    """Durable key/value store behind an agent's State Store."""

    async def store(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        ...

    async def retrieve(self, key: str) -> Any | None:
        """Return the value for key, or None if absent."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""
        ...

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        """List keys, optionally only those starting with prefix."""
        ...

    async def clear(self) -> None:
        """Remove every key."""
        ...


class InMemoryBackend:
    """Process-wide dictionary backend; may be shared by several agents."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def store(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[key] = value

    async def retrieve(self, key: str) -> Any | None:
        async with self._lock:
            return self._data.get(key)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if key not in self._data:
                return False
            del self._data[key]
            return True

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        async with self._lock:
            if prefix is None:
                return list(self._data)
            return [k for k in self._data if k.startswith(prefix)]

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()


class FileBackend:
    """One JSON file per key under a directory.

    Keys are percent-encoded into file names so namespaced keys such as
    ``"agent:key"`` stay valid on every filesystem.
    """

    SUFFIX = ".json"

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)
        self._lock = asyncio.Lock()

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _path_for(self, key: str) -> Path:
        return self._base_path / f"{quote(key, safe='')}{self.SUFFIX}"

    def _write(self, key: str, content: str) -> None:
        self._base_path.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)

    def _read(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def _remove(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def _keys(self) -> list[str]:
        if not self._base_path.exists():
            return []
        return [
            unquote(p.name[: -len(self.SUFFIX)])
            for p in self._base_path.iterdir()
            if p.is_file() and p.name.endswith(self.SUFFIX)
        ]

    async def store(self, key: str, value: Any) -> None:
        try:
            content = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode value for {key}: {e}") from e

        async with self._lock:
            try:
                await asyncio.to_thread(self._write, key, content)
            except OSError as e:
                raise StorageIOError(f"Failed to write {key}: {e}") from e

    async def retrieve(self, key: str) -> Any | None:
        async with self._lock:
            try:
                content = await asyncio.to_thread(self._read, key)
            except OSError as e:
                raise StorageIOError(f"Failed to read {key}: {e}") from e

        if content is None:
            return None
        try:
            return json.loads(content)
        except ValueError as e:
            raise SerializationError(f"Corrupt value for {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        async with self._lock:
            try:
                return await asyncio.to_thread(self._remove, key)
            except OSError as e:
                raise StorageIOError(f"Failed to delete {key}: {e}") from e

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        async with self._lock:
            try:
                keys = await asyncio.to_thread(self._keys)
            except OSError as e:
                raise StorageIOError(f"Failed to list {self._base_path}: {e}") from e

        if prefix is None:
            return keys
        return [k for k in keys if k.startswith(prefix)]

    async def clear(self) -> None:
        for key in await self.list_keys():
            await self.delete(key)
