"""Linear undo/redo list with a cursor and branch-discard semantics."""

from collections.abc import Iterable
from typing import Generic, TypeVar

T = TypeVar("T")


class VersionedList(Generic[T]):
    """Ordered snapshots plus a cursor pointing at the current one.

    Invariants:
    - ``cursor == -1`` exactly when the list is empty, otherwise
      ``0 <= cursor < len(entries)``
    - undo is possible iff ``cursor > 0``; redo iff ``cursor < len - 1``
    - pushing while the cursor is not at the tail discards every entry after
      the cursor before appending

    No size limit is enforced.
    """

    def __init__(self, entries: Iterable[T] = ()):
        self._entries: list[T] = list(entries)
        self._cursor = len(self._entries) - 1

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> list[T]:
        """A copy of all entries, oldest first."""
        return list(self._entries)

    @property
    def current(self) -> T | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def push(self, entry: T) -> None:
        """Discard the forward branch, append ``entry`` and move the cursor to it."""
        del self._entries[self._cursor + 1:]
        self._entries.append(entry)
        self._cursor = len(self._entries) - 1

    def undo(self) -> T | None:
        """Step back one entry; returns None (and does nothing) at the first entry."""
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> T | None:
        """Step forward one entry; returns None (and does nothing) at the last entry."""
        if not self.can_redo:
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def reset(self, initial: T | None = None) -> None:
        """Replace the whole list with ``[initial]``, or empty it."""
        self._entries = [] if initial is None else [initial]
        self._cursor = len(self._entries) - 1

    def clear(self) -> None:
        self.reset(None)
