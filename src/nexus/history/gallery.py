"""Bounded, newest-first galleries persisted as one collection per key."""

import logging
import time
from typing import Generic, TypeVar

import pydantic
from pydantic import BaseModel

from ..errors import PersistenceError
from ..store import KeyValueStore

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", bound=BaseModel)


def timestamp_id(after: int | None = None) -> int:
    """Millisecond timestamp id, bumped to stay above ``after``."""
    now = time.time_ns() // 1_000_000
    if after is not None and now <= after:
        return after + 1
    return now


class BoundedGallery(Generic[ItemT]):
    """Keeps at most ``limit`` items, newest first; older items fall off."""

    def __init__(self, store: KeyValueStore, key: str, item_type: type[ItemT], limit: int):
        self._store = store
        self._key = key
        self._item_type = item_type
        self._limit = limit
        self._items: list[ItemT] = []

    @property
    def items(self) -> list[ItemT]:
        return list(self._items)

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._items)

    def next_id(self) -> int:
        newest = max((getattr(i, "id", 0) for i in self._items), default=None)
        return timestamp_id(newest)

    def get(self, item_id: int) -> ItemT | None:
        for item in self._items:
            if getattr(item, "id", None) == item_id:
                return item
        return None

    async def load(self) -> None:
        try:
            data = await self._store.get(self._key)
        except PersistenceError as e:
            logger.error("Failed to load gallery '%s': %s", self._key, e)
            return
        if data is not None and not isinstance(data, list):
            logger.warning("Ignoring gallery '%s' stored as %s", self._key, type(data).__name__)
            data = None

        items: list[ItemT] = []
        for entry in data or []:
            try:
                items.append(self._item_type.model_validate(entry))
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid gallery entry in '%s': %s", self._key, e)
        self._items = items[: self._limit]

    async def add(self, item: ItemT) -> None:
        self._items = [item, *self._items][: self._limit]
        await self._persist()

    async def clear(self) -> None:
        self._items = []
        try:
            await self._store.delete(self._key)
        except PersistenceError as e:
            logger.error("Failed to clear gallery '%s': %s", self._key, e)

    async def _persist(self) -> None:
        try:
            await self._store.set(self._key, [i.model_dump(mode="json") for i in self._items])
        except PersistenceError as e:
            logger.error("Failed to save gallery '%s': %s", self._key, e)
