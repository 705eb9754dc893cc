"""Tab panes of the TUI.

Each pane owns the widgets of one tab and forwards user actions to the
matching service object. Panes never touch the generative service directly.
"""

import logging
from pathlib import Path

from rich.markup import escape
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, ListItem, ListView, Markdown, Select, Static

from ..errors import (
    NexusError,
    TransportError,
    UnsupportedCapability,
    ValidationError,
)
from ..genai import (
    ImageAspectRatio,
    InlineData,
    StoryAudience,
    StoryGenre,
    StoryLength,
    StoryOptions,
    StoryTone,
    VideoAspectRatio,
)
from ..history import ADJUSTMENT_RANGES, ImageEditSession
from ..sessions import CHAT_MODELS, ChatService, PersonaCatalog
from ..studio import VIDEO_PRESETS, VIDEO_STYLES, ImageStudio, StoryStudio, VideoStudio
from .config import HISTORY_STATUS_REFRESH
from .screens import ConfirmationScreen, RenameScreen
from .widgets import AdjustmentField, ChatHistoryWidget, ChatInputBar, SessionList, StatusLine

logger = logging.getLogger(__name__)


def _read_image(path: str) -> InlineData:
    try:
        image = InlineData.from_file(path)
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e.strerror or e}") from e
    if not image.is_image:
        raise ValidationError("Please upload a valid image file.")
    return image


class ChatPane(Horizontal):
    """Session sidebar plus the active conversation."""

    def __init__(self, chat: ChatService, personas: PersonaCatalog, **kwargs) -> None:
        super().__init__(**kwargs)
        self._chat = chat
        self._personas = personas
        self._unsubscribe = None
        self._listed: tuple = ()

    def compose(self) -> ComposeResult:
        with Vertical(id="session-sidebar"):
            yield SessionList(id="session-list")
            with Horizontal(id="session-actions"):
                yield Button("New", id="new-chat-btn", variant="success")
                yield Button("Rename", id="rename-btn")
                yield Button("Delete", id="delete-btn", variant="error")
        with Vertical(id="chat-main"):
            with Horizontal(classes="row"):
                yield Select(
                    [(p.name, p.id) for p in self._personas.all().values()],
                    value=self._chat.persona_id,
                    allow_blank=False,
                    id="persona-select",
                )
                yield Select(
                    [(m.name, m.id) for m in CHAT_MODELS.values()],
                    value=self._chat.model_id,
                    allow_blank=False,
                    id="model-select",
                )
                yield Button("Speak", id="speak-btn").with_tooltip("Read the last reply aloud")
            yield ChatHistoryWidget(id="chat-history")
            yield StatusLine("", id="chat-status", classes="status")
            yield ChatInputBar(id="chat-input-bar")

    async def on_mount(self) -> None:
        self.query_one("#session-sidebar").border_title = "Chats"
        self._unsubscribe = self._chat.registry.subscribe(self._on_registry_change)
        await self.refresh_view()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_registry_change(self, session_id: str | None) -> None:
        self.call_later(self.refresh_view)

    async def refresh_view(self) -> None:
        registry = self._chat.registry
        sessions = registry.list_sessions()
        listed = tuple((s.id, s.name, len(s.messages)) for s in sessions) + (registry.active_id,)
        if listed != self._listed:
            self._listed = listed
            await self.query_one("#session-list", SessionList).show_sessions(sessions, registry.active_id)

        await self.query_one("#chat-history", ChatHistoryWidget).show_session(
            registry.active_session, welcome=self._chat.persona.welcome_message
        )
        self.query_one("#chat-input-bar", ChatInputBar).set_busy(self._chat.loading)

    def _sync_selectors(self) -> None:
        self.query_one("#persona-select", Select).value = self._chat.persona_id
        self.query_one("#model-select", Select).value = self._chat.model_id

    def _status(self, text: str, error: bool = False) -> None:
        self.query_one("#chat-status", StatusLine).set_status(text, error)

    async def on_select_changed(self, event: Select.Changed) -> None:
        if event.value is Select.BLANK:
            return
        try:
            if event.select.id == "persona-select" and event.value != self._chat.persona_id:
                self._chat.set_persona(str(event.value))
            elif event.select.id == "model-select" and event.value != self._chat.model_id:
                self._chat.set_model(str(event.value))
            else:
                return
        except ValidationError as e:
            self._status(str(e), error=True)
            return
        self._status("")
        await self.refresh_view()

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "session-list" or event.item.name is None:
            return
        if event.item.name == self._chat.registry.active_id:
            return
        if await self._chat.select_session(event.item.name) is None:
            self._status("That chat no longer exists.", error=True)
        else:
            self._status("")
        self._sync_selectors()
        await self.refresh_view()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "new-chat-btn":
            self.start_new_chat()
        elif button_id == "rename-btn":
            self._rename_active()
        elif button_id == "delete-btn":
            self._delete_active()
        elif button_id == "mic-btn":
            listening = self._chat.toggle_listening()
            if self._chat.error:
                self._status(self._chat.error, error=True)
            else:
                self._status("Listening..." if listening else "")
        elif button_id == "speak-btn":
            self._speak_last()

    def start_new_chat(self) -> None:
        self._chat.new_chat()
        self._status("")
        self.call_later(self.refresh_view)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def _speak_last(self) -> None:
        session = self._chat.registry.active_session
        if session is None:
            return
        indexes = [i for i, m in enumerate(session.messages) if m.role == "model" and m.has_text]
        if not indexes:
            return
        try:
            self._chat.read_aloud(indexes[-1])
        except UnsupportedCapability as e:
            self.notify(str(e), severity="warning", timeout=3)

    @work(group="chat-dialogs")
    async def _rename_active(self) -> None:
        session = self._chat.registry.active_session
        if session is None:
            self.notify("No chat selected", severity="warning", timeout=2)
            return
        name = await self.app.push_screen_wait(RenameScreen(session.name))
        if name is None:
            return
        try:
            await self._chat.rename_session(session.id, name)
        except ValidationError as e:
            self._status(str(e), error=True)

    @work(group="chat-dialogs")
    async def _delete_active(self) -> None:
        session = self._chat.registry.active_session
        if session is None:
            self.notify("No chat selected", severity="warning", timeout=2)
            return
        confirmed = await self.app.push_screen_wait(
            ConfirmationScreen(f"Delete chat '{session.name}'? This cannot be undone.")
        )
        if confirmed:
            await self._chat.delete_session(session.id)
            self.notify("Chat deleted", timeout=2)

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        attachment = None
        if event.attachment_path:
            try:
                attachment = _read_image(event.attachment_path)
            except ValidationError as e:
                self._status(str(e), error=True)
                return
        self.query_one("#chat-input-bar", ChatInputBar).clear()
        self._send(event.value, attachment)

    @work(group="chat-send")
    async def _send(self, text: str, attachment: InlineData | None) -> None:
        bar = self.query_one("#chat-input-bar", ChatInputBar)
        bar.set_busy(True)
        self._status("Thinking...")
        try:
            result = await self._chat.send(text, attachment)
        except ValidationError as e:
            bar.set_text(text)
            self._status(str(e), error=True)
            return
        finally:
            bar.set_busy(self._chat.loading)

        if result.ok:
            self._status("")
        else:
            self._status(f"Error: {result.error}", error=True)
        await self.refresh_view()


class EditorPane(Horizontal):
    """AI image editing with adjustments, undo/redo, gallery and auto-save."""

    def __init__(self, editor: ImageEditSession, **kwargs) -> None:
        super().__init__(**kwargs)
        self._editor = editor

    def compose(self) -> ComposeResult:
        with Vertical(classes="left-column"):
            with Horizontal(classes="row"):
                yield Input(placeholder="Image file to edit", id="editor-path")
                yield Button("Load", id="editor-load-btn", variant="primary")
                yield Button("Restore", id="editor-restore-btn").with_tooltip("Restore auto-saved work")
            with Horizontal(classes="row"):
                yield Input(placeholder="Describe the edit, e.g. 'add a retro filter'", id="editor-prompt")
                yield Button("Apply", id="editor-apply-btn", variant="success")
            yield Static("No image loaded", id="editor-preview")
            for name, (low, high) in ADJUSTMENT_RANGES.items():
                yield AdjustmentField(name, low, high, getattr(self._editor.adjustments, name))
            with Horizontal(classes="row"):
                yield Button("Undo", id="undo-btn").with_tooltip("Ctrl+Z")
                yield Button("Redo", id="redo-btn").with_tooltip("Ctrl+Shift+Z / Ctrl+Y")
                yield Button("Reset", id="reset-btn")
                yield Static("", id="editor-history", classes="status")
            with Horizontal(classes="row"):
                yield Input(placeholder="Save edited image to...", id="editor-output")
                yield Button("Save", id="editor-save-btn")
            yield StatusLine("", id="editor-status", classes="status")
        with Vertical(classes="right-column"):
            yield ListView(id="editor-gallery")
            yield Button("Clear gallery", id="editor-clear-btn", variant="error")

    async def on_mount(self) -> None:
        self.query_one("#editor-preview").border_title = "Preview"
        self.query_one("#editor-gallery").border_title = "Gallery"
        await self._editor.load()
        await self._refresh_gallery()
        if await self._editor.has_autosave():
            self._status("Unsaved work found. Press Restore to continue where you left off.")
        self._editor.start_autosave()
        self.set_interval(HISTORY_STATUS_REFRESH, self._refresh_history)
        self._refresh_history()

    async def on_unmount(self) -> None:
        await self._editor.stop_autosave()

    def _status(self, text: str, error: bool = False) -> None:
        self.query_one("#editor-status", StatusLine).set_status(text, error)

    def _refresh_history(self) -> None:
        history = self._editor.history
        label = f"History {history.cursor + 1}/{len(history)}" if history else "History empty"
        if self._editor.capture_pending:
            label += " *"
        self.query_one("#editor-history", Static).update(label)
        self.query_one("#undo-btn", Button).disabled = not history.can_undo
        self.query_one("#redo-btn", Button).disabled = not history.can_redo

    def _refresh_preview(self) -> None:
        editor = self._editor
        if editor.original is None:
            self.query_one("#editor-preview", Static).update("No image loaded")
            return
        lines = [f"Original: {editor.original.mime_type}, {len(editor.original.to_bytes()):,} bytes"]
        if editor.edited is not None:
            lines.append(f"Edited:   {editor.edited.mime_type}, {len(editor.edited.to_bytes()):,} bytes")
            lines.append(f"Overlay:  {editor.adjustments.intensity}%")
        lines.append(f"Filter:   {editor.adjustments.css_filter()}")
        if editor.response_text:
            lines.append(f"Model:    {editor.response_text}")
        self.query_one("#editor-preview", Static).update("\n".join(lines))

    def sync_from_editor(self) -> None:
        """Push editor state into the widgets after navigation or loading."""
        for field in self.query(AdjustmentField):
            field.set_value(getattr(self._editor.adjustments, field.param))
        prompt = self.query_one("#editor-prompt", Input)
        if prompt.value != self._editor.prompt:
            prompt.value = self._editor.prompt
        self._refresh_preview()
        self._refresh_history()

    async def _refresh_gallery(self) -> None:
        gallery = self.query_one("#editor-gallery", ListView)
        await gallery.clear()
        await gallery.extend([
            ListItem(Label(escape(item.prompt[:60])), name=str(item.id))
            for item in self._editor.gallery.items
        ])

    def handle_key(self, key: str) -> None:
        if self._editor.handle_key(key) is not None:
            self.sync_from_editor()

    def on_input_changed(self, event: Input.Changed) -> None:
        input_id = event.input.id or ""
        if input_id == "editor-prompt":
            self._editor.prompt = event.value
        elif input_id.startswith("adj-"):
            try:
                self._editor.set_adjustment(input_id[4:], int(event.value))
            except (ValueError, ValidationError):
                event.input.add_class("-invalid")
                return
            event.input.remove_class("-invalid")
            self._refresh_preview()

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "editor-gallery" or event.item.name is None:
            return
        try:
            await self._editor.select_from_gallery(int(event.item.name))
        except ValidationError as e:
            self._status(str(e), error=True)
            return
        self._status("")
        self.sync_from_editor()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "editor-load-btn":
            await self._load(self.query_one("#editor-path", Input).value.strip())
        elif button_id == "editor-restore-btn":
            if await self._editor.restore_autosave():
                self._status("Restored auto-saved work")
            else:
                self._status("Nothing to restore")
            self.sync_from_editor()
        elif button_id == "editor-apply-btn":
            self._apply()
        elif button_id == "undo-btn":
            self.handle_key("ctrl+z")
        elif button_id == "redo-btn":
            self.handle_key("ctrl+y")
        elif button_id == "reset-btn":
            self._editor.reset_adjustments()
            self.sync_from_editor()
        elif button_id == "editor-save-btn":
            self._save(self.query_one("#editor-output", Input).value.strip())
        elif button_id == "editor-clear-btn":
            self._clear_gallery()

    async def _load(self, path: str) -> None:
        if not path:
            self._status("Enter the path of an image to edit.", error=True)
            return
        try:
            await self._editor.load_image(_read_image(path))
        except ValidationError as e:
            self._status(str(e), error=True)
            return
        self._status(f"Loaded {Path(path).name}")
        self.sync_from_editor()

    def _save(self, path: str) -> None:
        edited = self._editor.edited
        if edited is None or not path:
            self._status("Apply an edit and enter a file name first.", error=True)
            return
        destination = Path(path).expanduser()
        try:
            destination.write_bytes(edited.to_bytes())
        except OSError as e:
            logger.warning("Cannot save edited image to %s: %s", destination, e)
            self._status(f"Cannot save: {e}", error=True)
            return
        self.notify(f"Saved {destination}", timeout=3)

    @work(exclusive=True, group="editor-apply")
    async def _apply(self) -> None:
        self.query_one("#editor-apply-btn", Button).disabled = True
        self._status("Applying AI edit...")
        try:
            await self._editor.apply_edit(self.query_one("#editor-prompt", Input).value)
        except (ValidationError, TransportError) as e:
            self._status(str(e), error=True)
            return
        finally:
            self.query_one("#editor-apply-btn", Button).disabled = False
        self._status("Edit applied")
        self.sync_from_editor()
        await self._refresh_gallery()

    @work(group="editor-dialogs")
    async def _clear_gallery(self) -> None:
        confirmed = await self.app.push_screen_wait(
            ConfirmationScreen("Clear the entire editing history? This cannot be undone.")
        )
        if confirmed:
            await self._editor.clear_gallery()
            await self._refresh_gallery()


class ImagePane(Vertical):
    """Text-to-image generation."""

    def __init__(self, studio: ImageStudio, **kwargs) -> None:
        super().__init__(**kwargs)
        self._studio = studio

    def compose(self) -> ComposeResult:
        with Horizontal(classes="row"):
            yield Input(placeholder="Describe the image", id="image-prompt")
            yield Select(
                [(ratio.value, ratio.value) for ratio in ImageAspectRatio],
                value=ImageAspectRatio.SQUARE.value,
                allow_blank=False,
                id="image-aspect",
            )
            yield Button("Generate", id="image-generate-btn", variant="success")
        with Horizontal(classes="row"):
            yield Input(placeholder="Save image to...", value="nexus-image.png", id="image-output")
            yield Button("Save", id="image-save-btn")
        yield StatusLine("", id="image-status", classes="status")

    def _status(self, text: str, error: bool = False) -> None:
        self.query_one("#image-status", StatusLine).set_status(text, error)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "image-generate-btn":
            self._generate()
        elif event.button.id == "image-save-btn":
            try:
                path = self._studio.save(Path(self.query_one("#image-output", Input).value).expanduser())
            except (ValidationError, OSError) as e:
                self._status(str(e), error=True)
                return
            self.notify(f"Saved {path}", timeout=3)

    @work(exclusive=True, group="image-generate")
    async def _generate(self) -> None:
        prompt = self.query_one("#image-prompt", Input).value
        ratio = str(self.query_one("#image-aspect", Select).value)
        self._status("Generating image...")
        try:
            image = await self._studio.generate(prompt, ratio)
        except (ValidationError, TransportError) as e:
            self._status(str(e), error=True)
            return
        self._status(f"Generated {image.mime_type}, {len(image.to_bytes()):,} bytes")


class StoryPane(Vertical):
    """Streamed story writing."""

    def __init__(self, studio: StoryStudio, **kwargs) -> None:
        super().__init__(**kwargs)
        self._studio = studio

    def compose(self) -> ComposeResult:
        defaults = StoryOptions()
        with Horizontal(classes="row"):
            yield Input(placeholder="Story idea", id="story-prompt")
            yield Button("Write", id="story-generate-btn", variant="success")
            yield Button("Read aloud", id="story-read-btn")
        with Horizontal(classes="row"):
            for option_id, enum, value in (
                ("story-genre", StoryGenre, defaults.genre),
                ("story-audience", StoryAudience, defaults.audience),
                ("story-tone", StoryTone, defaults.tone),
                ("story-length", StoryLength, defaults.length),
            ):
                yield Select([(m.value, m.value) for m in enum], value=value.value, allow_blank=False, id=option_id)
        yield Markdown("", id="story-output")
        yield StatusLine("", id="story-status", classes="status")

    def _status(self, text: str, error: bool = False) -> None:
        self.query_one("#story-status", StatusLine).set_status(text, error)

    def _options(self) -> StoryOptions:
        return StoryOptions(
            genre=self.query_one("#story-genre", Select).value,
            audience=self.query_one("#story-audience", Select).value,
            tone=self.query_one("#story-tone", Select).value,
            length=self.query_one("#story-length", Select).value,
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "story-generate-btn":
            self._generate()
        elif event.button.id == "story-read-btn":
            try:
                self._studio.read_aloud()
            except UnsupportedCapability as e:
                self.notify(str(e), severity="warning", timeout=3)

    @work(exclusive=True, group="story-generate")
    async def _generate(self) -> None:
        output = self.query_one("#story-output", Markdown)
        button = self.query_one("#story-generate-btn", Button)
        button.disabled = True
        self._status("Writing...")
        try:
            await self._studio.generate(
                self.query_one("#story-prompt", Input).value,
                self._options(),
                on_fragment=output.update,
            )
        except (ValidationError, TransportError) as e:
            self._status(str(e), error=True)
            return
        finally:
            button.disabled = False
        self._status("")


class VideoPane(Horizontal):
    """Video generation with presets, styles and a gallery."""

    def __init__(self, studio: VideoStudio, **kwargs) -> None:
        super().__init__(**kwargs)
        self._studio = studio

    def compose(self) -> ComposeResult:
        with Vertical(classes="left-column"):
            with Horizontal(classes="row"):
                yield Select([(p.name, p.name) for p in VIDEO_PRESETS], prompt="Presets", id="video-preset")
                yield Select(
                    [(ratio.value, ratio.value) for ratio in VideoAspectRatio],
                    value=VideoAspectRatio.LANDSCAPE.value,
                    allow_blank=False,
                    id="video-aspect",
                )
                yield Select(
                    [(s.name, s.name) for s in VIDEO_STYLES],
                    value=VIDEO_STYLES[0].name,
                    allow_blank=False,
                    id="video-style",
                )
            with Horizontal(classes="row"):
                yield Input(placeholder="Describe the video", id="video-prompt")
            with Horizontal(classes="row"):
                yield Input(placeholder="Starting image (optional)", id="video-image")
                yield Button("Generate", id="video-generate-btn", variant="success")
            with Horizontal(classes="row"):
                yield Input(placeholder="Download to...", value="nexus-video.mp4", id="video-output")
                yield Button("Download", id="video-download-btn")
            yield StatusLine("", id="video-status", classes="status")
        with Vertical(classes="right-column"):
            yield ListView(id="video-gallery")
            yield Button("Clear gallery", id="video-clear-btn", variant="error")

    async def on_mount(self) -> None:
        self.query_one("#video-gallery").border_title = "Gallery"
        await self._studio.load()
        await self._refresh_gallery()

    def _status(self, text: str, error: bool = False) -> None:
        self.query_one("#video-status", StatusLine).set_status(text, error)

    async def _refresh_gallery(self) -> None:
        gallery = self.query_one("#video-gallery", ListView)
        await gallery.clear()
        await gallery.extend([
            ListItem(Label(f"{escape(item.prompt.strip()[:50])} ({item.aspect_ratio})"), name=str(item.id))
            for item in self._studio.gallery.items
        ])

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "video-preset" and event.value is not Select.BLANK:
            self.query_one("#video-prompt", Input).value = self._studio.apply_preset(str(event.value))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "video-gallery" or event.item.name is None:
            return
        try:
            item = self._studio.select_from_gallery(int(event.item.name))
        except ValidationError as e:
            self._status(str(e), error=True)
            return
        self.query_one("#video-prompt", Input).value = item.prompt
        self.query_one("#video-aspect", Select).value = item.aspect_ratio
        self._status(f"Selected video: {item.url}")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "video-generate-btn":
            self._generate()
        elif event.button.id == "video-download-btn":
            self._download()
        elif event.button.id == "video-clear-btn":
            self._clear_gallery()

    @work(exclusive=True, group="video-generate")
    async def _generate(self) -> None:
        image = None
        image_path = self.query_one("#video-image", Input).value.strip()
        try:
            if image_path:
                image = _read_image(image_path)
            self.query_one("#video-generate-btn", Button).disabled = True
            self._status("Warming up the video engine...")
            video = await self._studio.generate(
                self.query_one("#video-prompt", Input).value,
                str(self.query_one("#video-aspect", Select).value),
                str(self.query_one("#video-style", Select).value),
                image=image,
                on_progress=self._status,
            )
        except (ValidationError, TransportError) as e:
            self._status(str(e), error=True)
            return
        finally:
            self.query_one("#video-generate-btn", Button).disabled = False
        self._status(f"Video ready: {video.uri}")
        await self._refresh_gallery()

    @work(exclusive=True, group="video-download")
    async def _download(self) -> None:
        destination = Path(self.query_one("#video-output", Input).value).expanduser()
        self._status("Downloading...")
        try:
            path = await self._studio.download(destination)
        except (NexusError, OSError) as e:
            self._status(str(e), error=True)
            return
        self._status(f"Saved {path}")

    @work(group="video-dialogs")
    async def _clear_gallery(self) -> None:
        confirmed = await self.app.push_screen_wait(
            ConfirmationScreen("Clear the entire video history? This cannot be undone.")
        )
        if confirmed:
            await self._studio.clear_gallery()
            await self._refresh_gallery()
