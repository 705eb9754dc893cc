"""Tests for markup built by the TUI widgets."""
import pytest
from rich.text import Text

from nexus.genai import InlineData
from nexus.ui.widgets import attachment_label, log_line


class TestWidgetMarkup:
    """Tests that user and log text is shown literally."""

    def test_attachment_label_is_visible(self):
        """Test that the bracketed attachment note is not parsed as a markup tag."""
        data = InlineData.from_bytes(b"x" * 1234, "image/png")

        assert Text.from_markup(attachment_label(data)).plain == "[attachment: image/png, 1,234 bytes]"

    @pytest.mark.parametrize("message", [
        "closing tag [/] in a message",
        "Session name cannot be empty: [/bold]",
        "saved to /tmp/[draft].png",
        "[red]not a style[/red]",
    ])
    def test_log_line_keeps_message_text(self, message):
        """Test that log messages with brackets render as written."""
        line = log_line("12:00:00", "ERROR", "red", "sessions.chat", message)

        plain = Text.from_markup(line).plain

        assert plain.endswith(message)
        assert "[sessions.chat]" in plain

    def test_component_is_escaped(self):
        """Test that a bracketed component name does not open a tag."""
        line = log_line("12:00:00", "INFO", "cyan", "[/x]", "ready")

        assert "[[/x]]" in Text.from_markup(line).plain
