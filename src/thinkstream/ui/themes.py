"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes for the transcript, sidebar and thinking sections
- Dark/light mode configuration

To add a new theme, define it here and add it to THEMES.
"""

from textual.theme import Theme

# Dark slate palette; thinking sections use the muted secondary colour
THINKSTREAM_DARK = Theme(
    name="thinkstream-dark",
    primary="#7aa2f7",
    secondary="#9aa5ce",
    accent="#e0af68",
    foreground="#c0caf5",
    background="#16161e",
    success="#9ece6a",
    warning="#ff9e64",
    error="#f7768e",
    surface="#1a1b26",
    panel="#1f2335",
    dark=True,
    variables={
        "border": "#3b4261",
        "border-blurred": "#292e42",
        "text-muted": "#565f89",
        "scrollbar": "#292e42",
        "scrollbar-hover": "#3b4261",
        "scrollbar-active": "#7aa2f7",
        "scrollbar-background": "#1f2335",
        "footer-key-foreground": "#e0af68",
        "input-selection-background": "#7aa2f7 30%",
        "block-cursor-background": "#7aa2f7",
        "block-cursor-foreground": "#16161e",
    },
)

THINKSTREAM_LIGHT = Theme(
    name="thinkstream-light",
    primary="#2e7de9",
    secondary="#6172b0",
    accent="#8c6c3e",
    foreground="#3760bf",
    background="#e1e2e7",
    success="#587539",
    warning="#b15c00",
    error="#f52a65",
    surface="#e9e9ed",
    panel="#d0d5e3",
    dark=False,
    variables={
        "border": "#a8aecb",
        "text-muted": "#848cb5",
        "footer-key-foreground": "#8c6c3e",
    },
)

THEMES = (THINKSTREAM_DARK, THINKSTREAM_LIGHT)
DEFAULT_THEME = THINKSTREAM_DARK.name
