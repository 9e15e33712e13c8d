"""Storage module."""

from .backends import FileBackend, InMemoryBackend, IStateBackend
from .sqlite import SQLiteBackend
from .state_store import StateStore

__all__ = [
    "IStateBackend",
    "InMemoryBackend",
    "FileBackend",
    "SQLiteBackend",
    "StateStore",
]
