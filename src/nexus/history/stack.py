"""Edit history stack for the image editor."""

import logging

from .models import EditState
from .versioned import VersionedList

logger = logging.getLogger(__name__)


class EditHistory(VersionedList[EditState]):
    """Undo/redo stack of editor snapshots.

    Unavailable undo/redo is a no-op returning None; it is logged at debug
    level so keyboard mashing at either end stays quiet.
    """

    def undo(self) -> EditState | None:
        state = super().undo()
        if state is None:
            logger.debug("Nothing to undo (cursor %d)", self.cursor)
        return state

    def redo(self) -> EditState | None:
        state = super().redo()
        if state is None:
            logger.debug("Nothing to redo (cursor %d of %d)", self.cursor, len(self))
        return state
