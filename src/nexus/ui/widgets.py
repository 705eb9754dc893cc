"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Log rendering, level filtering and record forwarding
- Chat message rendering and incremental streaming updates
- Session list rendering
- Numeric adjustment fields
"""

import logging
import threading
from datetime import datetime

from rich.markup import escape
from textual.app import App
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message as TextualMessage
from textual.widgets import Button, Input, Label, ListItem, ListView, Markdown, RichLog, Static, TextArea

from ..genai import InlineData
from ..sessions import Message, Session
from .config import LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, SESSION_LIST_PREVIEW, LogLevel


def log_line(timestamp: str, level_name: str, level_color: str, component: str, message: str) -> str:
    """Markup for one log record; the record's own text is escaped."""
    return (
        f"[dim]{timestamp}[/] "
        f"[{level_color}]{level_name:<5}[/] "
        f"[magenta]\\[{escape(component)}][/] {escape(message)}"
    )


def attachment_label(data: InlineData) -> str:
    return escape(f"[attachment: {data.mime_type}, {len(data.to_bytes()):,} bytes]")


class LogPanel(RichLog):
    """Log panel with level filtering.

    Shows timestamped records from every ``nexus`` logger.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Hidden"

    def __init__(self, *args, log_level: int = LogLevel.INFO, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        self.display = False

    def add_record(self, level: int, component: str, message: str) -> None:
        """Add a log entry if it meets the current level threshold."""
        if level < self._log_level:
            return

        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        level_colors = {
            LogLevel.DEBUG: "dim white",
            LogLevel.INFO: "cyan",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red",
        }
        level_name = LogLevel.name(level)
        level_color = level_colors.get(LogLevel.from_string(level_name), "red")
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        self.write(log_line(timestamp, level_name, level_color, component, message))

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self._update_subtitle()

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True


class PanelLogHandler(logging.Handler):
    """Forwards log records to a LogPanel.

    Records emitted off the app's thread are marshalled with
    ``call_from_thread``.
    """

    def __init__(self, app: App, panel: LogPanel, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._app = app
        self._panel = panel
        self._thread_id = threading.get_ident()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            component = record.name.removeprefix("nexus.")
            message = record.getMessage()
            if threading.get_ident() == self._thread_id:
                self._panel.add_record(record.levelno, component, message)
            else:
                self._app.call_from_thread(self._panel.add_record, record.levelno, component, message)
        except Exception:
            self.handleError(record)


class ChatMessageView(Vertical):
    """One rendered chat message."""

    def __init__(self, message: Message, *args, **kwargs) -> None:
        super().__init__(*args, classes=f"message message-{message.role}", **kwargs)
        self._message = message

    def compose(self):
        role = "You" if self._message.role == "user" else "Nexus"
        yield Label(role, classes="message-role")
        attachments = [p.inline_data for p in self._message.parts if p.inline_data is not None]
        for attachment in attachments:
            yield Label(attachment_label(attachment))
        yield Markdown(self._message.text or "...")

    def refresh_text(self, message: Message) -> None:
        self._message = message
        self.query_one(Markdown).update(message.text or "...")


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history.

    Re-rendering the same session with one more fragment updates only the
    last message, so streaming does not rebuild the whole view.
    """

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "No session"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._session_id: str | None = None
        self._count = 0

    async def show_session(self, session: Session | None, welcome: str | None = None) -> None:
        if session is None:
            self._session_id = None
            self._count = 0
            await self.remove_children()
            if welcome:
                await self.mount(ChatMessageView(Message.model_text(welcome)))
            self.border_subtitle = "New chat"
            return

        self.border_subtitle = session.name
        if session.id == self._session_id and len(session.messages) == self._count and self._count:
            views = list(self.query(ChatMessageView))
            if views:
                views[-1].refresh_text(session.messages[-1])
                self.scroll_end(animate=False)
                return

        self._session_id = session.id
        self._count = len(session.messages)
        await self.remove_children()
        await self.mount_all([ChatMessageView(m) for m in session.messages])
        self.scroll_end(animate=False)


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea, image attachment path and Send button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str, attachment_path: str) -> None:
            super().__init__()
            self.value = value
            self.attachment_path = attachment_path

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Input(placeholder="Image path (optional)", id="chat-attachment")
        yield Button("Mic", id="mic-btn").with_tooltip("Voice input")
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            event.stop()
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()

    def _cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if self._history_index == -1:
            self._history_index = len(self._history) - 1
        elif direction < 0 and self._history_index > 0:
            self._history_index -= 1
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        attachment = self.query_one("#chat-attachment", Input)
        value = text_area.text.strip()
        path = attachment.value.strip()
        if not value and not path:
            return
        if value and (not self._history or self._history[-1] != value):
            self._history.append(value)
        self._history_index = -1
        self.post_message(self.Submitted(value, path))

    def clear(self) -> None:
        self.query_one("#chat-input", TextArea).text = ""
        self.query_one("#chat-attachment", Input).value = ""

    def set_text(self, text: str) -> None:
        self.query_one("#chat-input", TextArea).text = text

    def set_busy(self, busy: bool) -> None:
        self.query_one("#send-btn", Button).disabled = busy

    def focus_input(self) -> None:
        self.query_one("#chat-input", TextArea).focus()


class SessionList(ListView):
    """Session sidebar, newest first; each item carries the session id as its name."""

    async def show_sessions(self, sessions: list[Session], active_id: str | None) -> None:
        await self.clear()
        items = []
        for session in sessions:
            preview = session.last_message.text if session.last_message else ""
            preview = preview.replace("\n", " ")[:SESSION_LIST_PREVIEW]
            items.append(ListItem(
                Label(f"[b]{escape(session.name)}[/b]\n[dim]{escape(preview)}[/dim]"),
                name=session.id,
            ))
        await self.extend(items)
        for index, session in enumerate(sessions):
            if session.id == active_id:
                self.index = index
                break


class AdjustmentField(Horizontal):
    """Labelled integer field for one adjustment parameter."""

    def __init__(self, name: str, low: int, high: int, value: int, **kwargs) -> None:
        super().__init__(classes="adjustment", **kwargs)
        self._param = name
        self._low = low
        self._high = high
        self._value = value

    @property
    def param(self) -> str:
        return self._param

    def compose(self):
        yield Label(f"{self._param.title()} ({self._low}-{self._high})")
        yield Input(str(self._value), type="integer", id=f"adj-{self._param}")

    def set_value(self, value: int) -> None:
        field = self.query_one(Input)
        if field.value != str(value):
            field.value = str(value)
        field.remove_class("-invalid")


class StatusLine(Static):
    """Single status line that can flag errors."""

    def set_status(self, text: str, error: bool = False) -> None:
        self.set_class(error, "error-text")
        self.update(text)
