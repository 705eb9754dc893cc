"""Terminal UI module for Nexus Studio.

Provides a Textual-based TUI with chat, image editing, image, story and
video tabs.

Module structure (each module hides a design decision):
- widgets.py: Custom widgets (chat rendering, session list, log panel)
- panes.py: One pane per tab (user interaction flow per feature)
- screens.py: Modal dialogs (confirmation, rename)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- config.py: UI constants
- app.py: Application orchestration and global key bindings
"""

from .app import NexusApp, run_textual_tui
from .config import LogLevel
from .widgets import ChatHistoryWidget, ChatInputBar, LogPanel, PanelLogHandler, SessionList

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "LogLevel",
    "LogPanel",
    "NexusApp",
    "PanelLogHandler",
    "SessionList",
    "run_textual_tui",
]
