"""Main Textual TUI application.

Orchestrates the tab panes, global key bindings and the log panel.
"""

import asyncio
import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, TabbedContent, TabPane

from ..history import ImageEditSession
from ..sessions import ChatService, PersonaCatalog
from ..studio import ImageStudio, StoryStudio, VideoStudio
from .config import TAB_CHAT, TAB_EDITOR, TAB_IMAGES, TAB_STORY, TAB_VIDEO, LogLevel
from .panes import ChatPane, EditorPane, ImagePane, StoryPane, VideoPane
from .styles import APP_CSS
from .themes import NEXUS_SLATE
from .widgets import LogPanel, PanelLogHandler

logger = logging.getLogger(__name__)


class NexusApp(App):
    """Textual TUI for Nexus Studio."""

    CSS = APP_CSS
    TITLE = "Nexus Studio"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+n", "new_chat", "New Chat"),
        Binding("ctrl+d", "toggle_log", "Log"),
        Binding("ctrl+z", "history_key('ctrl+z')", "Undo", priority=True),
        Binding("ctrl+shift+z", "history_key('ctrl+shift+z')", "Redo", show=False, priority=True),
        Binding("ctrl+y", "history_key('ctrl+y')", "Redo", priority=True),
    ]

    def __init__(
        self,
        chat: ChatService,
        personas: PersonaCatalog,
        editor: ImageEditSession,
        images: ImageStudio,
        story: StoryStudio,
        video: VideoStudio,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._chat = chat
        self._personas = personas
        self._editor = editor
        self._images = images
        self._story = story
        self._video = video
        self._log_level = log_level
        self._log_handler: PanelLogHandler | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with TabbedContent(initial=TAB_CHAT):
            with TabPane("Chat", id=TAB_CHAT):
                yield ChatPane(self._chat, self._personas, id="chat-pane")
            with TabPane("Image Editor", id=TAB_EDITOR):
                yield EditorPane(self._editor, id="editor-pane")
            with TabPane("Images", id=TAB_IMAGES):
                yield ImagePane(self._images, id="image-pane")
            with TabPane("Story", id=TAB_STORY):
                yield StoryPane(self._story, id="story-pane")
            with TabPane("Video", id=TAB_VIDEO):
                yield VideoPane(self._video, id="video-pane")
        yield LogPanel(id="log-panel")
        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(NEXUS_SLATE)
        self.theme = "nexus-slate"
        self.sub_title = f"{self._chat.persona.name} | {self._chat.model.name}"

        log_panel = self.query_one("#log-panel", LogPanel)
        self._log_handler = PanelLogHandler(self, log_panel)
        logging.getLogger("nexus").addHandler(self._log_handler)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            logger.info("Log panel enabled with level: %s", self._log_level.upper())

    def on_unmount(self) -> None:
        if self._log_handler is not None:
            logging.getLogger("nexus").removeHandler(self._log_handler)
            self._log_handler = None

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        self.sub_title = f"{self._chat.persona.name} | {self._chat.model.name}"

    def action_new_chat(self) -> None:
        self.query_one(TabbedContent).active = TAB_CHAT
        self.query_one("#chat-pane", ChatPane).start_new_chat()

    def action_toggle_log(self) -> None:
        is_visible = self.query_one("#log-panel", LogPanel).toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_history_key(self, key: str) -> None:
        """Undo/redo in the image editor; other tabs ignore the shortcut."""
        if self.query_one(TabbedContent).active != TAB_EDITOR:
            return
        self.query_one("#editor-pane", EditorPane).handle_key(key)


async def run_textual_tui(
    chat: ChatService,
    personas: PersonaCatalog,
    editor: ImageEditSession,
    images: ImageStudio,
    story: StoryStudio,
    video: VideoStudio,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        chat: Chat service bound to a loaded session registry
        personas: Loaded persona catalog
        editor: Image edit session
        images: Image studio
        story: Story studio
        video: Video studio
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    app = NexusApp(
        chat=chat,
        personas=personas,
        editor=editor,
        images=images,
        story=story,
        video=video,
        log_level=log_level,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await editor.stop_autosave()
        await editor.autosave()
