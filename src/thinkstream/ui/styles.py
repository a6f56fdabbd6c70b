"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.
"""

APP_CSS = """
/* ============================================
   Main Screen Layout - Sidebar + Chat
   ============================================ */
Screen {
    layout: vertical;
    background: $background;
}

#main {
    height: 1fr;
}

/* ============================================
   Session Sidebar
   ============================================ */
#sidebar {
    width: 30;
    height: 100%;
    background: $panel;
    border: round $secondary 60%;
    border-title-color: $secondary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;

    &:focus-within {
        border: round $secondary;
    }
}

#session-list {
    height: 1fr;
    background: transparent;
}

.session-item {
    padding: 0 1;
    height: auto;

    & .session-title {
        width: 100%;
        color: $foreground;
    }

    & .session-date {
        color: $text-muted;
    }

    &.-current .session-title {
        color: $accent;
        text-style: bold;
    }
}

#session-buttons {
    height: 3;
    align: center middle;

    & Button {
        min-width: 7;
        width: 1fr;
        margin: 0 0;
    }
}

/* ============================================
   Chat Column - Transcript + Log
   ============================================ */
#chat-panel {
    width: 1fr;
    height: 100%;
}

#transcript {
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

    &.-streaming {
        border: round $warning;
        border-title-color: $warning;
    }
}

.spacer {
    height: 0;
    width: 100%;
}

#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-y: scroll;
    overflow-x: auto;
}

/* ============================================
   Chat Messages
   ============================================ */
.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $primary;
    background: $primary 6%;

    & .message-header {
        color: $primary;
        text-style: bold;
    }
}

.message-header {
    height: auto;
}

.message-content {
    height: auto;
    margin: 0;
}

/* Thinking section: muted, collapsible */
.thinking {
    height: auto;
    margin: 0 0 1 0;
    padding: 0;
    border: none;
    background: $secondary 6%;

    & CollapsibleTitle {
        color: $secondary;
        text-style: italic;
    }

    & .thinking-content {
        color: $text-muted;
        padding: 0 1;
    }
}

/* ============================================
   Bottom Bar - Status + Input
   ============================================ */
#bottom-bar {
    height: auto;
    padding: 0 1;
    background: $panel;
    border-top: solid $border;
}

#status {
    height: 1;
    padding: 0 1;
    background: $surface;
    color: $foreground;
}

ChatInputBar {
    height: 5;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
    text-style: bold;
}

/* ============================================
   Markdown Content
   ============================================ */
Markdown {
    margin: 0;
    padding: 0;
}

MarkdownFence {
    background: $surface;
    border: round $border;
    margin: 1 0;
}

MarkdownBlockQuote {
    border-left: wide $primary;
    background: $primary 8%;
    padding: 0 1;
}

Header {
    background: $panel;
    color: $foreground;
    height: 1;
}

Footer {
    background: $panel;
}
"""
