"""Dark theme constants for the ReaperConverter GUI."""

# Base colors
BG_PRIMARY = "#1b1d1f"
BG_SECONDARY = "#26292c"
BG_TERTIARY = "#33373b"
BG_HOVER = "#41464b"

# Accent colors
ACCENT = "#4fbf8b"
ACCENT_DARK = "#3a9a6e"
ACCENT_SUCCESS = "#7cd992"
ACCENT_WARNING = "#e0735f"
ACCENT_INFO = "#6fa8dc"

# Text colors
TEXT_PRIMARY = "#f2f2f2"
TEXT_SECONDARY = "#c8c8c8"
TEXT_MUTED = "#8a8a8a"
TEXT_DISABLED = "#555555"

# Fonts
FONT_FAMILY = "Segoe UI"
FONT_MONO = "Consolas"
FONT_SIZE_TITLE = 20
FONT_SIZE_BODY = 11
FONT_SIZE_SMALL = 9
FONT_SIZE_MONO = 10

# Log line colors by level name
LOG_COLORS = {
    "DEBUG": TEXT_MUTED,
    "INFO": TEXT_SECONDARY,
    "WARNING": "#ffb74d",
    "ERROR": ACCENT_WARNING,
}

# Track kind -> label color in the project tree
TRACK_COLORS = {
    "master": ACCENT_WARNING,
    "folder": ACCENT_INFO,
    "audio": ACCENT,
    "notes": ACCENT_SUCCESS,
    "effect": "#ba68c8",
}
