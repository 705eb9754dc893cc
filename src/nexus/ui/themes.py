"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, etc.)

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Slate background with teal accents
NEXUS_SLATE = Theme(
    name="nexus-slate",
    primary="#2dd4bf",      # Teal - main accent
    secondary="#818cf8",    # Indigo - secondary accent
    accent="#fbbf24",       # Amber - highlights
    foreground="#e2e8f0",   # Light text
    background="#0f172a",   # Slate 900
    success="#34d399",
    warning="#fb923c",
    error="#f87171",
    surface="#1e293b",      # Slate 800
    panel="#162032",
    dark=True,
    variables={
        "block-cursor-foreground": "#0f172a",
        "block-cursor-background": "#2dd4bf",
        "block-cursor-text-style": "bold",
        "block-hover-background": "#334155 30%",

        "input-cursor-background": "#e2e8f0",
        "input-cursor-foreground": "#0f172a",
        "input-selection-background": "#2dd4bf 30%",

        "border": "#334155",
        "border-blurred": "#1e293b",

        "scrollbar": "#1e293b",
        "scrollbar-hover": "#334155",
        "scrollbar-active": "#2dd4bf",
        "scrollbar-background": "#0f172a",
        "scrollbar-corner-color": "#0f172a",

        "footer-foreground": "#cbd5e1",
        "footer-background": "#0f172a",
        "footer-key-foreground": "#2dd4bf",
        "footer-key-background": "#1e293b",
        "footer-description-foreground": "#94a3b8",

        "text-muted": "#64748b",
        "text-disabled": "#334155",
    },
)
