"""
GridCalc — curses front end

Draws the grid (``A: [result] = [formula]``), the Z sum and average, the
key hints and the remarks, then maps each key or mouse event onto a
``Session`` operation. Every input event triggers a full recompute.
"""

import curses
import logging

from calc.engine import CellKind, CellResult
from calc.formatting import format_value
from tui import __version__, themes
from tui.session import Session

logger = logging.getLogger(__name__)

TITLE = f" GridCalc - Mathematical Tools  v{__version__} "
HEADER = "Result  =  Mathematical Expression"
FOOTER = " rate | fc.sec | cst.key | s:expr | clear | new | delete | clone | rename "
SAVED = "Recalculate & Save to"

# Ctrl+<letter> arrives as chr(1..26) in raw mode.
CONTROL_KEYS = {
    "\x01": "line_start",      # Ctrl-A
    "\x02": "bottom",          # Ctrl-B
    "\x04": "duplicate_down",  # Ctrl-D
    "\x05": "line_end",        # Ctrl-E
    "\x0c": "clear_cell",      # Ctrl-L
    "\x14": "top",             # Ctrl-T
    "\x15": "clear_range",     # Ctrl-U
    "\x1a": "undo",            # Ctrl-Z
    "\t": "down",
    "\n": "commit",
    "\r": "commit",
    "\x7f": "backspace",
    "\x08": "backspace",
}

SPECIAL_KEYS = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_BACKSPACE: "backspace",
    curses.KEY_DC: "delete",
    curses.KEY_ENTER: "commit",
    curses.KEY_HOME: "home",
    curses.KEY_F4: "toggle_lock",
    curses.KEY_F5: "save",
    curses.KEY_F8: "clone",
    curses.KEY_PPAGE: "page_back",
    curses.KEY_NPAGE: "page_forward",
}

# Terminfo names of Ctrl+Left / Ctrl+Right.
NAMED_KEYS = {
    b"kLFT5": "page_back",
    b"kRIT5": "page_forward",
}

QUIT = "\x03"  # Ctrl-C


class App:
    """One curses screen bound to one ``Session``."""

    def __init__(self, stdscr, session: Session) -> None:
        self.stdscr = stdscr
        self.session = session
        s = session.settings
        self.output_width = s.output_width
        self.input_width = s.input_width
        self.actions = {
            "page_back": lambda: session.page(reverse=True),
            "page_forward": lambda: session.page(reverse=False),
            "clone": lambda: session.new_section(clone=True),
        }

    # ── Setup / loop ────────────────────────────────────────────────────

    def _setup(self) -> None:
        curses.raw()
        curses.noecho()
        self.stdscr.keypad(True)
        curses.mousemask(curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION)
        themes.apply_theme(self.session.settings.color, self.session.settings.attribute)

    def run(self) -> None:
        self._setup()
        while True:
            self.session.recompute()
            self._draw()
            try:
                key = self.stdscr.get_wch()
            except curses.error:
                continue
            if key == QUIT:
                break
            self._handle(key)

    # ── Input ───────────────────────────────────────────────────────────

    def _action(self, name: str) -> None:
        handler = self.actions.get(name) or getattr(self.session, name)
        handler()

    def _handle(self, key) -> None:
        if isinstance(key, str):
            if key in CONTROL_KEYS:
                self._action(CONTROL_KEYS[key])
            elif key.isprintable() and ord(key) < 128:
                self.session.insert(key)
            return
        if key == curses.KEY_MOUSE:
            self._mouse()
        elif key in SPECIAL_KEYS:
            self._action(SPECIAL_KEYS[key])
        else:
            name = NAMED_KEYS.get(curses.keyname(key))
            if name:
                self._action(name)

    def _mouse(self) -> None:
        try:
            _id, x, y, _z, bstate = curses.getmouse()
        except curses.error:
            return
        if bstate & (curses.BUTTON1_PRESSED | curses.BUTTON1_CLICKED):
            self.session.click(y - 3, x - (self.output_width + 9))
        elif bstate & curses.BUTTON4_PRESSED:
            self.session.up()
        elif bstate & getattr(curses, "BUTTON5_PRESSED", 0):
            self.session.down()

    # ── Drawing ─────────────────────────────────────────────────────────

    def _put(self, y: int, x: int, text: str, attr: int = curses.A_NORMAL) -> None:
        height, width = self.stdscr.getmaxyx()
        if y >= height or x >= width:
            return
        try:
            self.stdscr.addnstr(y, x, text, width - x - 1, attr)
        except curses.error:
            pass

    def _cell_attr(self, i: int, result: CellResult) -> int:
        s = self.session
        attrs = themes.ATTRS
        if result.kind == CellKind.IMPORT:
            return attrs["DIRECTIVE"]
        if result.is_error:
            return attrs["ERROR"]
        if i == s.row and not s.locked:
            return attrs["ACTIVE"]
        if i >= s.settings.aggregate_rows:
            return attrs["TAIL"]
        return curses.A_NORMAL

    def _draw(self) -> None:
        s = self.session
        attrs = themes.ATTRS
        rows = len(s.grid)
        self.stdscr.erase()

        line_width = self.output_width + self.input_width + 12
        self._put(0, 0, TITLE.ljust(line_width), curses.A_REVERSE)
        header = HEADER.center(line_width - len(s.section) - 8)
        self._put(2, 0, f"{header}<- {s.section} ->", attrs["HEADER"])

        for i, (label, result) in enumerate(zip(s.grid.labels, s.results)):
            line = (f"{label}: [{result.display:>{self.output_width}}] = "
                    f"[{s.grid[i]:<{self.input_width}}]")
            self._put(3 + i, 0, line, self._cell_attr(i, result))

        if s.saved:
            self._put(rows + 3, 32, f"{SAVED} -> Section: [{s.section}]", attrs["SAVED"])
            s.saved = False
        elif s.status:
            self._put(rows + 3, 32, s.status, attrs["ERROR"])
            s.status = ""

        last = s.grid.labels[s.settings.aggregate_rows - 1] if s.settings.aggregate_rows else "-"
        span = f"(A - {last})"
        self._put(rows + 4, 13, f"{span} Sum = Z = {format_value(s.aggregate.total, s.settings.step)}",
                  attrs["SUM"])
        self._put(rows + 5, 13, f"{span} Average = {format_value(s.aggregate.average, s.settings.step)}",
                  attrs["SUM"])
        status = "Locked" if s.locked else "Opened"
        self._put(rows + 6, 22, f"Status = {status} (F4 Status Switch)",
                  attrs["LOCKED" if s.locked else "OPENED"])
        self._put(rows + 8, 0, FOOTER.ljust(line_width), curses.A_REVERSE)

        for i, remark in enumerate(s.grid.remarks):
            self._put(rows + 10 + i, 0, remark)

        try:
            curses.curs_set(0 if s.locked else 1)
        except curses.error:
            pass
        if not s.locked:
            try:
                self.stdscr.move(3 + s.row, self.output_width + 9 + s.pos)
            except curses.error:
                pass
        self.stdscr.refresh()


def run(session: Session) -> None:
    """Take over the terminal until the user quits with Ctrl-C."""
    logger.info("Starting terminal session on section %r", session.section)
    curses.wrapper(lambda stdscr: App(stdscr, session).run())
