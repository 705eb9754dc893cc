"""Modal screens for the TUI.

This module hides the design decisions about:
- Confirmation and rename dialog appearance (CSS, layout)
- Keyboard shortcuts for dialogs
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

DIALOG_CSS = """
.dialog-screen {
    align: center middle;
    background: $background 70%;
}

.dialog {
    width: 60;
    height: auto;
    max-height: 20;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}

.dialog-title {
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
}

.dialog-buttons {
    width: 100%;
    height: 3;
    align: center middle;
    margin-top: 1;
}

.dialog-buttons Button {
    margin: 0 1;
    min-width: 10;
}
"""


class ConfirmationScreen(ModalScreen[bool]):
    """Yes/no confirmation for destructive actions (delete, clear)."""

    CSS = DIALOG_CSS

    BINDINGS = [
        Binding("y", "confirm_yes", "Yes", show=False),
        Binding("n", "confirm_no", "No", show=False),
        Binding("escape", "confirm_no", "Cancel", show=False),
    ]

    def __init__(self, prompt: str, title: str = "Are you sure?") -> None:
        super().__init__(classes="dialog-screen")
        self._prompt = prompt
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(self._title, classes="dialog-title")
            yield Static(self._prompt)
            with Horizontal(classes="dialog-buttons"):
                yield Button("Yes", id="btn-yes", variant="error")
                yield Button("No", id="btn-no", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-yes")

    def action_confirm_yes(self) -> None:
        self.dismiss(True)

    def action_confirm_no(self) -> None:
        self.dismiss(False)


class RenameScreen(ModalScreen[str | None]):
    """Prompt for a new session name; dismisses with None on cancel."""

    CSS = DIALOG_CSS

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, current: str) -> None:
        super().__init__(classes="dialog-screen")
        self._current = current

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("Rename chat", classes="dialog-title")
            yield Input(self._current, id="rename-input")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Cancel", id="btn-cancel")

    def on_mount(self) -> None:
        self.query_one("#rename-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            self.dismiss(self.query_one("#rename-input", Input).value)
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)
