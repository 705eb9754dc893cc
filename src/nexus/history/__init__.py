"""Edit history module for the image editor.

Module structure (each module hides a design decision):
- versioned.py: Cursor and branch-discard bookkeeping
- stack.py: Edit history specialised for editor snapshots
- models.py: Editor snapshot, adjustment and gallery item representation
- debounce.py: Quiet-period coalescing of rapid changes
- shortcuts.py: Keyboard mapping for undo/redo
- gallery.py: Bounded, persisted galleries
- editor.py: The image edit session tying these together
"""

from .debounce import Debouncer
from .editor import AutoSaveSnapshot, ImageEditSession
from .gallery import BoundedGallery, timestamp_id
from .models import ADJUSTMENT_RANGES, Adjustments, EditState, ImageGalleryItem, VideoGalleryItem
from .shortcuts import HistoryAction, resolve_shortcut
from .stack import EditHistory
from .versioned import VersionedList

__all__ = [
    "ADJUSTMENT_RANGES",
    "Adjustments",
    "AutoSaveSnapshot",
    "BoundedGallery",
    "Debouncer",
    "EditHistory",
    "EditState",
    "HistoryAction",
    "ImageEditSession",
    "ImageGalleryItem",
    "VersionedList",
    "VideoGalleryItem",
    "resolve_shortcut",
    "timestamp_id",
]
