from __future__ import annotations

from enum import Enum

THEME_COOKIE_NAME = "weatherview_theme"
THEME_COOKIE_MAX_AGE_SECONDS = 365 * 24 * 60 * 60


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


TOGGLE_GLYPHS = {
    Theme.LIGHT: "☾",
    Theme.DARK: "☀",
}


def theme_from_cookie(value: str | None, default: Theme = Theme.LIGHT) -> Theme:
    if not value:
        return default
    try:
        return Theme(value.strip().lower())
    except ValueError:
        return default


def toggle_theme(theme: Theme) -> Theme:
    return Theme.DARK if theme == Theme.LIGHT else Theme.LIGHT


def toggle_icon(theme: Theme) -> str:
    """Glyph for the toggle button: the moon switches to dark, the sun back to light."""
    return TOGGLE_GLYPHS[theme]
