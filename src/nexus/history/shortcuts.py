"""Keyboard shortcut resolution for undo/redo."""

from enum import Enum


class HistoryAction(str, Enum):
    UNDO = "undo"
    REDO = "redo"


_MODIFIERS = {"ctrl", "meta", "cmd", "super"}


def resolve_shortcut(key: str) -> HistoryAction | None:
    """Map a key description such as ``"ctrl+shift+z"`` to a history action.

    modifier+Z undoes; modifier+shift+Z and modifier+Y redo. Anything else,
    including a bare Z, resolves to None.
    """
    tokens = [t for t in key.lower().replace("-", "+").split("+") if t]
    if not tokens:
        return None

    letter = tokens[-1]
    mods = set(tokens[:-1])
    if not mods & _MODIFIERS:
        return None
    if letter == "z":
        return HistoryAction.REDO if "shift" in mods else HistoryAction.UNDO
    if letter == "y":
        return HistoryAction.REDO
    return None
