"""Abstract base class for key/value store backends.

This module defines the interface for durable collection storage.
The abstraction hides:
- Storage format (JSON text in a dict, SQLite rows, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """Abstract key/value store.

    Each key holds one serialized collection (chat sessions, galleries,
    auto-save slot). Writers replace the whole value: last write wins.

    Implementations raise ``PersistenceError`` for any read or write
    failure, including undecodable stored values.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend gracefully."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value stored under ``key``, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Serialize ``value`` to JSON and store it under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "KeyValueStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()
