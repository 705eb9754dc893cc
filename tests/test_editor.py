"""Unit tests for the image edit session."""
import asyncio

import pytest

from nexus.config import AUTO_SAVE_KEY, IMAGE_GALLERY_KEY, IMAGE_GALLERY_LIMIT
from nexus.errors import TransportError, ValidationError
from nexus.genai import InlineData
from nexus.history import Adjustments, EditState, ImageEditSession

QUIET = 0.05


async def settle():
    """Wait past the capture quiet period."""
    await asyncio.sleep(QUIET * 3)


@pytest.fixture
async def editor(service, store) -> ImageEditSession:
    session = ImageEditSession(service, store, quiet_period=QUIET, autosave_interval=0.01)
    await session.load()
    return session


@pytest.fixture
async def edited(editor, png) -> ImageEditSession:
    """Editor holding one AI edit: history is [S0]."""
    await editor.load_image(png)
    await editor.apply_edit("make it a watercolor")
    return editor


class TestCapture:
    """Tests for quiet-period capture of adjustment changes."""

    @pytest.mark.asyncio
    async def test_burst_of_changes_is_one_entry(self, edited):
        """Test that five rapid changes within the quiet period push a single entry."""
        for value in (110, 120, 130, 140, 150):
            edited.set_adjustment("brightness", value)

        assert edited.capture_pending
        await settle()

        assert len(edited.history) == 2
        assert edited.history.cursor == 1
        assert edited.history.current.brightness == 150

    @pytest.mark.asyncio
    async def test_three_brightness_changes(self, edited):
        """Test that [S0] plus three quick changes gives [S0, S1] with cursor 1."""
        s0 = edited.history.current
        edited.set_adjustment("brightness", 105)
        edited.set_adjustment("brightness", 110)
        edited.set_adjustment("brightness", 115)
        await settle()

        assert edited.history.entries[0] == s0
        assert edited.history.entries[1] == s0.with_adjustments(Adjustments(brightness=115))
        assert edited.history.cursor == 1

    @pytest.mark.asyncio
    async def test_separate_changes_are_separate_entries(self, edited):
        """Test that changes split by a quiet period become two entries."""
        edited.set_adjustment("contrast", 150)
        await settle()
        edited.set_adjustment("sepia", 40)
        await settle()

        assert len(edited.history) == 3
        assert edited.history.current.contrast == 150
        assert edited.history.current.sepia == 40

    @pytest.mark.asyncio
    async def test_no_capture_with_empty_history(self, editor, png):
        """Test that adjustments before any AI edit are not recorded."""
        await editor.load_image(png)
        editor.set_adjustment("saturation", 50)
        await settle()

        assert len(editor.history) == 0
        assert editor.adjustments.saturation == 50

    def test_no_capture_while_loading(self):
        """Test that capture refuses to push while a request is in flight."""
        editor = ImageEditSession(service=None, store=None)  # type: ignore[arg-type]
        editor.history.push(EditState(prompt="p"))
        editor.adjustments = Adjustments(brightness=10)
        editor.loading = True

        assert editor.capture() is False
        assert len(editor.history) == 1

    def test_no_capture_when_unchanged(self):
        """Test that parameters equal to the current entry push nothing."""
        editor = ImageEditSession(service=None, store=None)  # type: ignore[arg-type]
        editor.history.push(EditState(prompt="p"))

        assert editor.capture() is False
        assert len(editor.history) == 1

    @pytest.mark.asyncio
    async def test_unchanged_value_does_not_schedule(self, edited):
        """Test that setting a parameter to its current value is a no-op."""
        edited.set_adjustment("brightness", 100)

        assert not edited.capture_pending

    @pytest.mark.asyncio
    async def test_invalid_adjustments_rejected(self, edited):
        """Test that unknown names and out-of-range values raise ValidationError."""
        with pytest.raises(ValidationError):
            edited.set_adjustment("hue", 10)
        with pytest.raises(ValidationError):
            edited.set_adjustment("brightness", 201)
        with pytest.raises(ValidationError):
            edited.set_adjustment("intensity", -1)

        assert edited.adjustments == Adjustments()
        assert not edited.capture_pending

    @pytest.mark.asyncio
    async def test_reset_adjustments_is_captured(self, edited):
        """Test that resetting to defaults is recorded like any change."""
        edited.set_adjustment("sepia", 80)
        await settle()

        edited.reset_adjustments()
        await settle()

        assert len(edited.history) == 3
        assert edited.history.current.adjustments == Adjustments()


class TestNavigation:
    """Tests for undo/redo in the editor."""

    @pytest.mark.asyncio
    async def test_undo_and_redo_restore_state(self, edited):
        """Test that undo and redo put the parameters back."""
        edited.set_adjustment("brightness", 150)
        await settle()

        state = edited.undo()
        assert state.brightness == 100
        assert edited.adjustments.brightness == 100
        assert edited.history.cursor == 0

        state = edited.redo()
        assert state.brightness == 150
        assert edited.adjustments.brightness == 150
        assert edited.history.cursor == 1

    @pytest.mark.asyncio
    async def test_navigation_does_not_capture(self, edited):
        """Test that restoring a state never becomes a new entry."""
        edited.set_adjustment("brightness", 150)
        await settle()

        edited.undo()
        await settle()

        assert len(edited.history) == 2
        assert edited.history.cursor == 0
        assert not edited.navigating

    @pytest.mark.asyncio
    async def test_undo_cancels_pending_capture(self, edited):
        """Test that undo drops a change still waiting for its quiet period."""
        edited.set_adjustment("brightness", 150)
        await settle()
        edited.set_adjustment("contrast", 50)

        edited.undo()
        await settle()

        assert len(edited.history) == 2
        assert edited.history.cursor == 0

    @pytest.mark.asyncio
    async def test_change_after_undo_discards_redo_branch(self, edited):
        """Test that a new change after undo replaces the forward entries."""
        edited.set_adjustment("brightness", 150)
        await settle()
        edited.set_adjustment("brightness", 160)
        await settle()
        edited.undo()
        edited.undo()

        edited.set_adjustment("sepia", 20)
        await settle()

        assert len(edited.history) == 2
        assert edited.history.current.sepia == 20
        assert edited.history.current.brightness == 100
        assert not edited.history.can_redo

    @pytest.mark.asyncio
    async def test_unavailable_undo_returns_none(self, edited):
        """Test that undo at the first entry changes nothing."""
        assert edited.undo() is None
        assert edited.history.cursor == 0

    @pytest.mark.asyncio
    async def test_keyboard_shortcuts(self, edited):
        """Test that modifier+Z and modifier+Y drive the history."""
        edited.set_adjustment("brightness", 150)
        await settle()

        assert edited.handle_key("ctrl+z").brightness == 100
        assert edited.handle_key("ctrl+y").brightness == 150
        assert edited.handle_key("meta+z").brightness == 100
        assert edited.handle_key("meta+shift+z").brightness == 150
        assert edited.handle_key("z") is None
        assert edited.history.cursor == 1


class TestApplyEdit:
    """Tests for AI edits and the gallery."""

    @pytest.mark.asyncio
    async def test_apply_edit_pushes_state(self, edited, service):
        """Test that a successful edit becomes a history entry and gallery item."""
        assert len(edited.history) == 1
        assert edited.history.current.prompt == "make it a watercolor"
        assert edited.edited.to_bytes().endswith(b"EDIT")
        assert edited.response_text == "Here is your edit."
        assert len(edited.gallery) == 1
        assert edited.selected_gallery_id == edited.gallery.items[0].id
        assert service.edit_requests[0][0] == "make it a watercolor"

    @pytest.mark.asyncio
    async def test_apply_edit_resets_adjustments(self, edited):
        """Test that a new edit starts from default parameters."""
        edited.set_adjustment("brightness", 150)
        await settle()

        await edited.apply_edit("add a moon")

        assert edited.adjustments == Adjustments()
        assert len(edited.history) == 3
        assert edited.history.current.prompt == "add a moon"
        assert edited.history.current.adjustments == Adjustments()

    @pytest.mark.asyncio
    async def test_apply_edit_requires_image(self, editor):
        """Test that editing without an image raises ValidationError."""
        with pytest.raises(ValidationError):
            await editor.apply_edit("anything")

    @pytest.mark.asyncio
    async def test_apply_edit_requires_prompt(self, editor, png):
        """Test that a blank prompt raises ValidationError."""
        await editor.load_image(png)

        with pytest.raises(ValidationError):
            await editor.apply_edit("   ")

    @pytest.mark.asyncio
    async def test_transport_failure_leaves_state(self, edited, service):
        """Test that a failed edit keeps history, gallery and result untouched."""
        before = (edited.history.entries, edited.gallery.items, edited.edited)
        service.edit_error = TransportError("quota exhausted")

        with pytest.raises(TransportError):
            await edited.apply_edit("make it darker")

        assert (edited.history.entries, edited.gallery.items, edited.edited) == before
        assert edited.error == "quota exhausted"
        assert not edited.loading

    @pytest.mark.asyncio
    async def test_unexpected_failure_becomes_transport_error(self, edited, service):
        """Test that other collaborator failures are converted."""
        service.edit_error = RuntimeError("socket closed")

        with pytest.raises(TransportError, match="socket closed"):
            await edited.apply_edit("make it darker")

    @pytest.mark.asyncio
    async def test_gallery_is_bounded(self, edited, store):
        """Test that only the newest twenty edits are kept, newest first."""
        for i in range(IMAGE_GALLERY_LIMIT + 4):
            await edited.apply_edit(f"edit {i}")

        items = edited.gallery.items
        assert len(items) == IMAGE_GALLERY_LIMIT
        assert items[0].prompt == f"edit {IMAGE_GALLERY_LIMIT + 3}"
        assert [i.id for i in items] == sorted((i.id for i in items), reverse=True)
        assert len(await store.get(IMAGE_GALLERY_KEY)) == IMAGE_GALLERY_LIMIT

    @pytest.mark.asyncio
    async def test_gallery_survives_reload(self, edited, service, store):
        """Test that a new session sees the persisted gallery."""
        reopened = ImageEditSession(service, store)
        await reopened.load()

        assert reopened.gallery.items == edited.gallery.items

    @pytest.mark.asyncio
    async def test_select_from_gallery_resets_history(self, edited):
        """Test that reopening a gallery item leaves exactly one entry."""
        first_id = edited.gallery.items[0].id
        await edited.apply_edit("second edit")
        edited.set_adjustment("brightness", 150)
        await settle()

        state = await edited.select_from_gallery(first_id)

        assert edited.history.entries == [state]
        assert edited.history.cursor == 0
        assert edited.prompt == "make it a watercolor"
        assert edited.adjustments == Adjustments()
        assert edited.selected_gallery_id == first_id

    @pytest.mark.asyncio
    async def test_select_missing_gallery_item(self, edited):
        """Test that an unknown gallery id raises ValidationError."""
        with pytest.raises(ValidationError):
            await edited.select_from_gallery(-1)

    @pytest.mark.asyncio
    async def test_clear_gallery(self, edited, store):
        """Test that clearing the gallery removes the persisted collection."""
        await edited.clear_gallery()

        assert len(edited.gallery) == 0
        assert edited.selected_gallery_id is None
        assert await store.get(IMAGE_GALLERY_KEY) is None

    @pytest.mark.asyncio
    async def test_load_image_rejects_non_image(self, editor):
        """Test that a non-image upload raises ValidationError."""
        with pytest.raises(ValidationError):
            await editor.load_image(InlineData.from_bytes(b"%PDF", "application/pdf"))

    @pytest.mark.asyncio
    async def test_load_image_clears_history(self, edited, png):
        """Test that loading a new image starts a fresh history."""
        await edited.load_image(png)

        assert len(edited.history) == 0
        assert edited.edited is None


class TestAutoSave:
    """Tests for the auto-save slot."""

    @pytest.mark.asyncio
    async def test_autosave_and_restore(self, edited, service, store):
        """Test that saved work is restored and seeds a one-entry history."""
        edited.set_adjustment("brightness", 130)
        assert await edited.autosave()

        reopened = ImageEditSession(service, store)
        assert await reopened.has_autosave()
        assert await reopened.restore_autosave()

        assert reopened.original == edited.original
        assert reopened.edited == edited.edited
        assert reopened.prompt == "make it a watercolor"
        assert reopened.adjustments.brightness == 130
        assert len(reopened.history) == 1
        assert reopened.history.current.brightness == 130

    @pytest.mark.asyncio
    async def test_autosave_without_image(self, editor):
        """Test that there is nothing to save before an image is loaded."""
        assert await editor.autosave() is False
        assert not await editor.has_autosave()

    @pytest.mark.asyncio
    async def test_corrupt_slot_is_removed(self, editor, store):
        """Test that undecodable auto-save data is discarded."""
        store.put_raw(AUTO_SAVE_KEY, "{not json")

        assert await editor.restore_autosave() is False
        assert not await editor.has_autosave()

    @pytest.mark.asyncio
    async def test_malformed_slot_is_removed(self, editor, store):
        """Test that auto-save data of the wrong shape is discarded."""
        await store.set(AUTO_SAVE_KEY, {"original": "not a data url"})

        assert await editor.restore_autosave() is False
        assert await store.get(AUTO_SAVE_KEY) is None
        assert editor.original is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["5", "true", '{"id": 1}'])
    async def test_gallery_of_wrong_shape_loads_empty(self, service, store, raw):
        """Test that a stored gallery that is not a list is ignored on load."""
        store.put_raw(IMAGE_GALLERY_KEY, raw)

        editor = ImageEditSession(service, store, quiet_period=QUIET)
        await editor.load()

        assert editor.gallery.items == []

    @pytest.mark.asyncio
    async def test_load_image_discards_autosave(self, edited, png):
        """Test that starting on a new image drops the old auto-save."""
        await edited.autosave()

        await edited.load_image(png)

        assert not await edited.has_autosave()

    @pytest.mark.asyncio
    async def test_periodic_autosave(self, edited):
        """Test that the background task writes the slot and stops cleanly."""
        task = edited.start_autosave()
        await asyncio.sleep(0.05)
        await edited.stop_autosave()

        assert task.done()
        assert await edited.has_autosave()
