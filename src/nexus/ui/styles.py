"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.
"""

APP_CSS = """
Screen {
    background: $background;
}

TabbedContent {
    height: 1fr;
}

TabPane {
    padding: 0 1;
}

.row {
    height: auto;
    margin-bottom: 1;
}

.row Input {
    width: 1fr;
}

.row Button {
    margin-left: 1;
}

.row Select {
    width: 1fr;
}

.status {
    height: auto;
    color: $text-muted;
    padding: 0 1;
}

.error-text {
    color: $error;
}

/* ============================================
   Chat Tab
   ============================================ */
#session-sidebar {
    width: 34;
    height: 100%;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
}

#session-list {
    height: 1fr;
    background: $panel;
}

#session-list > ListItem {
    padding: 0 1;
}

#session-actions {
    height: auto;
}

#session-actions Button {
    width: 1fr;
    min-width: 6;
}

#chat-main {
    height: 100%;
    padding-left: 1;
}

#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.message {
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
}

.message-user {
    border-left: thick $secondary;
}

.message-model {
    border-left: thick $primary;
}

.message-role {
    text-style: bold;
    color: $text-muted;
}

#chat-input-bar {
    height: auto;
    max-height: 8;
}

#chat-input {
    width: 1fr;
    height: auto;
    min-height: 3;
    max-height: 6;
}

#chat-input-bar Button {
    margin-left: 1;
}

#chat-attachment {
    width: 30;
}

/* ============================================
   Image Editor Tab
   ============================================ */
.left-column {
    width: 2fr;
}

.right-column {
    width: 1fr;
    padding-left: 1;
}

#editor-preview {
    height: auto;
    min-height: 6;
    background: $panel;
    border: round $accent 60%;
    border-title-color: $accent;
    padding: 0 1;
}

.adjustment {
    height: auto;
}

.adjustment Label {
    width: 14;
    padding: 1 1 0 0;
}

.adjustment Input {
    width: 12;
}

.adjustment Input.-invalid {
    border: tall $error;
}

#editor-gallery, #video-gallery {
    height: 1fr;
    background: $panel;
    border: round $secondary 60%;
    border-title-color: $secondary;
}

/* ============================================
   Story Tab
   ============================================ */
#story-output {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    padding: 0 1;
}

/* ============================================
   Log Panel
   ============================================ */
#log-panel {
    height: auto;
    min-height: 6;
    max-height: 12;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    dock: bottom;
}

Footer {
    background: $background;
}
"""
