"""
GridCalc — colour / attribute names for the terminal

The ``[TUI]`` table names colours and text attributes the way most terminal
libraries spell them (``"DarkYellow"``, ``"Underlined"``). This module maps
those names onto curses colour numbers and attribute bits, and keeps the
active per-role attributes in ``ATTRS`` once ``apply_theme()`` has run.
"""

import curses

# ── Name tables ───────────────────────────────────────────────────────────
# Bright variants are the base colour drawn bold.

COLOR_NAMES = {
    "Black":       (curses.COLOR_BLACK,   0),
    "DarkGrey":    (curses.COLOR_BLACK,   curses.A_BOLD),
    "Red":         (curses.COLOR_RED,     curses.A_BOLD),
    "DarkRed":     (curses.COLOR_RED,     0),
    "Green":       (curses.COLOR_GREEN,   curses.A_BOLD),
    "DarkGreen":   (curses.COLOR_GREEN,   0),
    "Yellow":      (curses.COLOR_YELLOW,  curses.A_BOLD),
    "DarkYellow":  (curses.COLOR_YELLOW,  0),
    "Blue":        (curses.COLOR_BLUE,    curses.A_BOLD),
    "DarkBlue":    (curses.COLOR_BLUE,    0),
    "Magenta":     (curses.COLOR_MAGENTA, curses.A_BOLD),
    "DarkMagenta": (curses.COLOR_MAGENTA, 0),
    "Cyan":        (curses.COLOR_CYAN,    curses.A_BOLD),
    "DarkCyan":    (curses.COLOR_CYAN,    0),
    "White":       (curses.COLOR_WHITE,   curses.A_BOLD),
    "Grey":        (curses.COLOR_WHITE,   0),
}

ATTRIBUTE_NAMES = {
    "Bold":            curses.A_BOLD,
    "Underlined":      curses.A_UNDERLINE,
    "Reverse":         curses.A_REVERSE,
    "Italic":          getattr(curses, "A_ITALIC", curses.A_NORMAL),
    "Dim":             curses.A_DIM,
    "SlowBlink":       curses.A_BLINK,
    "RapidBlink":      curses.A_BLINK,
    "Hidden":          curses.A_INVIS,
    "NoBold":          curses.A_NORMAL,
    "NoUnderline":     curses.A_NORMAL,
    "NoReverse":       curses.A_NORMAL,
    "NoItalic":        curses.A_NORMAL,
    "NormalIntensity": curses.A_NORMAL,
    "NoBlink":         curses.A_NORMAL,
    "NoHidden":        curses.A_NORMAL,
    "CrossedOut":      curses.A_NORMAL,
    "NotCrossedOut":   curses.A_NORMAL,
}

FALLBACK_COLOR = "Green"
FALLBACK_ATTRIBUTE = "Underlined"

# ── Fixed roles (the active row colour comes from the settings) ──────────

PALETTE = dict(
    HEADER    = "Blue",
    ERROR     = "DarkRed",
    DIRECTIVE = "Blue",
    TAIL      = "Blue",
    SUM       = "Blue",
    SAVED     = "DarkYellow",
    LOCKED    = "Red",
    OPENED    = "Green",
)

# Role → curses attribute, filled by ``apply_theme()``.
ATTRS: dict[str, int] = {}


def color_spec(name: str) -> tuple[int, int]:
    """``(curses colour, extra attribute)`` for *name*, Green if unknown."""
    return COLOR_NAMES.get(name, COLOR_NAMES[FALLBACK_COLOR])


def attribute(name: str) -> int:
    """Curses attribute bits for *name*, underline if unknown."""
    return ATTRIBUTE_NAMES.get(name, ATTRIBUTE_NAMES[FALLBACK_ATTRIBUTE])


def palette(color: str) -> dict:
    """Role → colour name, with ``ACTIVE`` set to *color*."""
    return dict(PALETTE, ACTIVE=color)


def apply_theme(color: str, attr_name: str) -> None:
    """Initialise curses colour pairs and refresh ``ATTRS``.

    Must run after ``curses.initscr()``; without colour support every role
    falls back to plain text (the active row keeps its attribute).
    """
    ATTRS.clear()
    use_color = curses.has_colors()
    if use_color:
        curses.start_color()
        curses.use_default_colors()
    for pair_id, (role, name) in enumerate(sorted(palette(color).items()), start=1):
        fg, extra = color_spec(name)
        if use_color:
            curses.init_pair(pair_id, fg, -1)
            ATTRS[role] = curses.color_pair(pair_id) | extra
        else:
            ATTRS[role] = curses.A_NORMAL
    ATTRS["ACTIVE"] |= attribute(attr_name)
