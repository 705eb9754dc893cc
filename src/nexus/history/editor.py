"""Image edit session: AI edits, adjustments, history, gallery and auto-save.

Hides the design decisions about:
- When parameter changes become history entries (quiet-period coalescing)
- Which changes never become entries (loading, empty history, navigation)
- What the auto-save slot contains and when it is discarded
"""

import asyncio
import logging
from contextlib import contextmanager

import pydantic

from ..config import (
    AUTO_SAVE_INTERVAL,
    AUTO_SAVE_KEY,
    CAPTURE_QUIET_PERIOD,
    IMAGE_GALLERY_KEY,
    IMAGE_GALLERY_LIMIT,
)
from ..errors import PersistenceError, TransportError, ValidationError
from ..genai import EditedImage, GenerativeService, InlineData
from ..store import KeyValueStore
from .debounce import Debouncer
from .gallery import BoundedGallery
from .models import ADJUSTMENT_RANGES, Adjustments, EditState, ImageGalleryItem
from .shortcuts import HistoryAction, resolve_shortcut
from .stack import EditHistory

logger = logging.getLogger(__name__)


class AutoSaveSnapshot(pydantic.BaseModel):
    """Contents of the auto-save slot."""

    original: str
    edited: str | None = None
    prompt: str = ""
    adjustments: Adjustments = Adjustments()


class ImageEditSession:
    """State of the image editor tab.

    Example:
        editor = ImageEditSession(service, store)
        await editor.load()
        await editor.load_image(InlineData.from_bytes(png, "image/png"))
        await editor.apply_edit("make it a watercolor")
        editor.set_adjustment("brightness", 120)  # captured after the quiet period
        editor.undo()
    """

    def __init__(
        self,
        service: GenerativeService,
        store: KeyValueStore,
        quiet_period: float = CAPTURE_QUIET_PERIOD,
        autosave_interval: float = AUTO_SAVE_INTERVAL,
    ):
        self._service = service
        self._store = store
        self._autosave_interval = autosave_interval
        self._debouncer = Debouncer(self.capture, quiet_period)
        self._navigating = False
        self._autosave_task: asyncio.Task | None = None

        self.history = EditHistory()
        self.gallery: BoundedGallery[ImageGalleryItem] = BoundedGallery(
            store, IMAGE_GALLERY_KEY, ImageGalleryItem, IMAGE_GALLERY_LIMIT
        )
        self.original: InlineData | None = None
        self.edited: InlineData | None = None
        self.prompt = ""
        self.adjustments = Adjustments()
        self.response_text: str | None = None
        self.selected_gallery_id: int | None = None
        self.loading = False
        self.error: str | None = None

    async def load(self) -> None:
        await self.gallery.load()

    @property
    def capture_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def navigating(self) -> bool:
        return self._navigating

    # -- adjustments and capture -------------------------------------------

    def set_adjustment(self, name: str, value: int) -> None:
        """Change one adjustment parameter and restart the capture timer.

        Raises:
            ValidationError: Unknown parameter or value out of range
        """
        if name not in ADJUSTMENT_RANGES:
            raise ValidationError(f"Unknown adjustment: {name}")
        low, high = ADJUSTMENT_RANGES[name]
        value = int(value)
        if not low <= value <= high:
            raise ValidationError(f"{name} must be between {low} and {high}")
        if getattr(self.adjustments, name) == value:
            return

        self.adjustments = self.adjustments.model_copy(update={name: value})
        if not self._navigating:
            self._debouncer.trigger()

    def reset_adjustments(self) -> None:
        """Return every adjustment to its default; captured like any other change."""
        if self.adjustments == Adjustments():
            return
        self.adjustments = Adjustments()
        if not self._navigating:
            self._debouncer.trigger()

    def capture(self) -> bool:
        """Push the current parameters as a new entry if they differ from the cursor's.

        Called by the quiet-period timer; returns True if an entry was pushed.
        """
        if self.loading or self._navigating:
            return False
        current = self.history.current
        if current is None:
            return False
        if current.adjustments == self.adjustments:
            return False
        self.history.push(current.with_adjustments(self.adjustments))
        logger.debug("Captured edit state %d", self.history.cursor)
        return True

    # -- navigation ----------------------------------------------------------

    @contextmanager
    def _navigation(self):
        self._debouncer.cancel()
        self._navigating = True
        try:
            yield
        finally:
            self._navigating = False

    def _restore(self, state: EditState) -> None:
        self.adjustments = state.adjustments
        self.prompt = state.prompt
        self.edited = InlineData.from_data_url(state.result) if state.result else None

    def undo(self) -> EditState | None:
        with self._navigation():
            state = self.history.undo()
            if state is not None:
                self._restore(state)
        return state

    def redo(self) -> EditState | None:
        with self._navigation():
            state = self.history.redo()
            if state is not None:
                self._restore(state)
        return state

    def handle_key(self, key: str) -> EditState | None:
        """Apply an undo/redo keyboard shortcut; other keys are ignored."""
        action = resolve_shortcut(key)
        if action is HistoryAction.UNDO:
            return self.undo()
        if action is HistoryAction.REDO:
            return self.redo()
        return None

    # -- images ----------------------------------------------------------------

    async def load_image(self, image: InlineData) -> None:
        """Start editing a new image; any previous work is discarded.

        Raises:
            ValidationError: If the data is not an image
        """
        if not image.is_image:
            raise ValidationError("Please upload a valid image file.")

        await self.discard_autosave()
        self._debouncer.cancel()
        self.original = image
        self.edited = None
        self.response_text = None
        self.error = None
        self.adjustments = Adjustments()
        self.history.clear()
        self.selected_gallery_id = None

    async def apply_edit(self, prompt: str | None = None) -> EditedImage:
        """Ask the service to edit the loaded image.

        Raises:
            ValidationError: No image loaded or empty prompt
            TransportError: The service failed; editor state is unchanged
        """
        prompt = self.prompt if prompt is None else prompt
        if self.original is None:
            raise ValidationError("Please upload an image first.")
        if not prompt.strip():
            raise ValidationError("Please enter a prompt describing the edit.")

        self.prompt = prompt
        self.loading = True
        self.error = None
        self._debouncer.cancel()
        try:
            result = await self._service.edit_image(prompt, self.original)
        except TransportError as e:
            logger.error("Image edit failed: %s", e)
            self.error = str(e)
            raise
        except Exception as e:
            logger.error("Image edit failed: %s", e)
            self.error = str(e) or "An unknown error occurred."
            raise TransportError(self.error) from e
        finally:
            self.loading = False

        self.edited = result.image
        self.response_text = result.text
        self.adjustments = Adjustments()

        edited_url = result.image.to_data_url()
        self.history.push(EditState(result=edited_url, prompt=prompt))

        item = ImageGalleryItem(
            id=self.gallery.next_id(),
            prompt=prompt,
            original_url=self.original.to_data_url(),
            edited_url=edited_url,
        )
        await self.gallery.add(item)
        self.selected_gallery_id = item.id
        return result

    async def select_from_gallery(self, item_id: int) -> EditState:
        """Reopen a gallery item; its edit becomes the only history entry.

        Raises:
            ValidationError: If there is no such item
        """
        item = self.gallery.get(item_id)
        if item is None:
            raise ValidationError(f"No gallery item {item_id}")

        await self.discard_autosave()
        self._debouncer.cancel()
        self.original = InlineData.from_data_url(item.original_url)
        self.edited = InlineData.from_data_url(item.edited_url)
        self.prompt = item.prompt
        self.response_text = None
        self.error = None
        self.adjustments = Adjustments()
        self.selected_gallery_id = item.id

        state = EditState(result=item.edited_url, prompt=item.prompt)
        self.history.reset(state)
        return state

    async def clear_gallery(self) -> None:
        await self.gallery.clear()
        self.selected_gallery_id = None

    # -- auto-save -------------------------------------------------------------

    def snapshot(self) -> AutoSaveSnapshot | None:
        if self.original is None:
            return None
        return AutoSaveSnapshot(
            original=self.original.to_data_url(),
            edited=self.edited.to_data_url() if self.edited else None,
            prompt=self.prompt,
            adjustments=self.adjustments,
        )

    async def autosave(self) -> bool:
        """Write the current work to the auto-save slot; False if nothing was saved."""
        snapshot = self.snapshot()
        if snapshot is None:
            return False
        try:
            await self._store.set(AUTO_SAVE_KEY, snapshot.model_dump(mode="json"))
        except PersistenceError as e:
            logger.error("Auto-save failed: %s", e)
            return False
        logger.debug("Auto-saved editor state")
        return True

    async def run_autosave(self, interval: float | None = None) -> None:
        """Auto-save every ``interval`` seconds until cancelled."""
        interval = self._autosave_interval if interval is None else interval
        while True:
            await asyncio.sleep(interval)
            await self.autosave()

    def start_autosave(self) -> asyncio.Task:
        if self._autosave_task is None or self._autosave_task.done():
            self._autosave_task = asyncio.create_task(self.run_autosave())
        return self._autosave_task

    async def stop_autosave(self) -> None:
        task, self._autosave_task = self._autosave_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def has_autosave(self) -> bool:
        try:
            return await self._store.get(AUTO_SAVE_KEY) is not None
        except PersistenceError as e:
            logger.error("Failed to read auto-save slot: %s", e)
            return False

    async def restore_autosave(self) -> bool:
        """Reload saved work and seed the history with it.

        A corrupt slot is removed. Returns True if work was restored.
        """
        try:
            data = await self._store.get(AUTO_SAVE_KEY)
        except PersistenceError as e:
            logger.error("Failed to restore auto-saved state: %s", e)
            await self.discard_autosave()
            return False
        if data is None:
            return False

        try:
            snapshot = AutoSaveSnapshot.model_validate(data)
            original = InlineData.from_data_url(snapshot.original)
            edited = InlineData.from_data_url(snapshot.edited) if snapshot.edited else None
        except (pydantic.ValidationError, ValueError) as e:
            logger.error("Discarding corrupt auto-saved state: %s", e)
            await self.discard_autosave()
            return False

        self._debouncer.cancel()
        self.original = original
        self.edited = edited
        self.prompt = snapshot.prompt
        self.adjustments = snapshot.adjustments
        self.response_text = None
        self.selected_gallery_id = None
        self.history.reset(EditState(
            result=snapshot.edited,
            prompt=snapshot.prompt,
            **snapshot.adjustments.model_dump(),
        ))
        return True

    async def discard_autosave(self) -> None:
        try:
            await self._store.delete(AUTO_SAVE_KEY)
        except PersistenceError as e:
            logger.error("Failed to clear auto-save slot: %s", e)

