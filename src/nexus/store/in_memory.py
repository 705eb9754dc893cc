"""In-memory key/value store backend.

Simple dict-based storage for tests and ephemeral runs.
Data is lost when the application exits.
"""

import json
from typing import Any

from ..errors import PersistenceError
from .base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key/value store (session-only).

    Values are kept as JSON text so readers never share objects with
    writers. An optional ``quota`` (total characters across all values)
    emulates the storage limits of a browser-style local store.
    """

    def __init__(self, quota: int | None = None):
        self._quota = quota
        self._data: dict[str, str] = {}

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value under '{key}': {e}") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for '{key}' is not serializable: {e}") from e

        if self._quota is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(raw) > self._quota:
                raise PersistenceError(
                    f"Storage quota exceeded writing '{key}' ({used + len(raw)} > {self._quota})"
                )
        self._data[key] = raw

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def put_raw(self, key: str, raw: str) -> None:
        """Store raw text without encoding (used to simulate corruption)."""
        self._data[key] = raw

    @property
    def backend_type(self) -> str:
        return "memory"
