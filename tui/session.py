"""
GridCalc — editing session

Everything the terminal front end does to the grid goes through a
``Session``: keystroke edits, cursor moves, undo, section switching and the
commands run when Enter is pressed on a cell. Nothing here touches the
terminal, so the whole editing model can be driven from tests.
"""

import logging
from pathlib import Path
from typing import Optional

from calc.aggregate import Aggregate
from calc.engine import CellKind, CellResult, classify
from calc.grid import Grid, recompute
from tui import tools
from tui.config import DEFAULT_SECTION, Settings
from tui.history import UndoHistory
from tui.snapshot import read_snapshot, write_snapshot
from tui.storage import ConfigError, SectionError, SectionStore

logger = logging.getLogger(__name__)


class Session:
    """Grid, cursor and section state of one interactive run."""

    def __init__(self, store: SectionStore, grid_path: Optional[Path] = None,
                 settings: Optional[Settings] = None) -> None:
        self.store = store
        self.grid_path = Path(grid_path) if grid_path is not None else store.path
        self.settings = settings or store.settings()
        store.rows = self.settings.rows
        self.constants: dict[str, str] = store.constants()
        self.grid = Grid(self.settings.rows)
        self.history = UndoHistory()
        self.section: str = DEFAULT_SECTION
        self.row: int = 0
        self.pos: int = 0
        self.locked: bool = False
        self.saved: bool = False
        self.status: str = ""
        self.aggregate = Aggregate()
        self.results: list[CellResult] = []

    @classmethod
    def open(cls, store: SectionStore, grid_path: Optional[Path] = None) -> "Session":
        """Back up the configuration, then read the grid file.

        Raises ``ConfigError`` if the configuration file is malformed.
        """
        store.backup()
        session = cls(store, grid_path)
        session.read()
        session.recompute()
        return session

    # ── Grid file ───────────────────────────────────────────────────────

    def _grid_is_toml(self) -> bool:
        return self.grid_path.suffix.lower() == ".toml"

    def _grid_store(self) -> SectionStore:
        if self.grid_path == self.store.path:
            return self.store
        return SectionStore(self.grid_path, self.settings.rows)

    def read(self) -> None:
        try:
            if self._grid_is_toml():
                self._grid_store().read_grid(self.grid)
            else:
                read_snapshot(self.grid_path, self.grid)
        except ConfigError:
            if self.grid_path == self.store.path:
                raise
            logger.warning("Cannot read %s; starting with an empty grid", self.grid_path)
            self.grid = Grid(self.settings.rows)

    def save(self) -> bool:
        """Write the grid to the grid file under the current section."""
        try:
            if self._grid_is_toml():
                self._grid_store().save(self.section, self.grid)
            else:
                write_snapshot(self.grid_path, self.grid)
        except (OSError, ConfigError) as e:
            logger.error("Saving %s failed: %s", self.grid_path, e)
            self.status = f"Save failed: {e}"
            return False
        self.saved = True
        self.status = ""
        return True

    # ── Evaluation ──────────────────────────────────────────────────────

    def recompute(self) -> list[CellResult]:
        self.results, self.aggregate = recompute(
            self.grid,
            self.aggregate,
            constants=self.constants,
            precision=self.settings.step,
            output_width=self.settings.output_width,
            aggregate_rows=self.settings.aggregate_rows,
        )
        return self.results

    # ── Helpers ─────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return self.grid[self.row]

    def _set_text(self, text: str) -> None:
        self.grid[self.row] = text
        self.pos = len(text)

    def _reply(self, message: str) -> None:
        """Show *message* in place of the current cell's text."""
        self.history.push(self.grid)
        self._set_text(message)

    def _goto(self, row: int) -> None:
        self.row = row
        self.pos = len(self.grid[row])

    # ── Editing ─────────────────────────────────────────────────────────

    def insert(self, ch: str) -> None:
        if self.locked or len(self.text) >= self.settings.input_width:
            return
        self.history.push(self.grid)
        if ch in "zZ" and self.row < self.settings.aggregate_rows:
            self._set_text(self.settings.z_notice)
            return
        text = self.text
        self.grid[self.row] = text[:self.pos] + ch + text[self.pos:]
        self.pos += 1

    def backspace(self) -> None:
        if self.locked or self.pos == 0:
            return
        self.history.push(self.grid)
        text = self.text
        self.grid[self.row] = text[:self.pos - 1] + text[self.pos:]
        self.pos -= 1

    def delete(self) -> None:
        if self.locked or self.pos >= len(self.text):
            return
        self.history.push(self.grid)
        text = self.text
        self.grid[self.row] = text[:self.pos] + text[self.pos + 1:]

    def clear_cell(self) -> None:
        if self.locked:
            return
        self.history.push(self.grid)
        self.grid[self.row] = ""
        self.pos = 0

    def clear_range(self) -> None:
        """Blank the aggregate range (A-K)."""
        if self.locked:
            return
        self.history.push(self.grid)
        self.grid.clear(0, self.settings.aggregate_rows)
        self.row = self.pos = 0

    def duplicate_down(self) -> None:
        """Copy the current formula into the next row and move there."""
        if self.locked or not self.text.strip() or self.row >= len(self.grid) - 1:
            return
        self.history.push(self.grid)
        self.grid[self.row + 1] = self.text
        self._goto(self.row + 1)

    def undo(self) -> None:
        if self.locked:
            return
        cells = self.history.pop()
        if cells is None:
            return
        self.grid.restore(cells)
        last = self.grid.last_filled()
        if last is not None:
            self._goto(last)
        else:
            self.pos = min(self.pos, len(self.text))

    def toggle_lock(self) -> None:
        self.locked = not self.locked

    # ── Cursor ──────────────────────────────────────────────────────────

    def up(self) -> None:
        if not self.locked and self.row > 0:
            self._goto(self.row - 1)

    def down(self) -> None:
        if not self.locked and self.row < len(self.grid) - 1:
            self._goto(self.row + 1)

    def left(self) -> None:
        if not self.locked and self.pos > 0:
            self.pos -= 1

    def right(self) -> None:
        if not self.locked and self.pos < len(self.text):
            self.pos += 1

    def line_start(self) -> None:
        if not self.locked:
            self.pos = 0

    def line_end(self) -> None:
        if not self.locked:
            self.pos = len(self.text)

    def top(self) -> None:
        if not self.locked:
            self._goto(0)

    def bottom(self) -> None:
        if not self.locked:
            self._goto(len(self.grid) - 1)

    def click(self, row: int, pos: int) -> None:
        if self.locked or not 0 <= row < len(self.grid):
            return
        self.row = row
        self.pos = max(0, min(pos, len(self.grid[row])))

    # ── Sections ────────────────────────────────────────────────────────

    def switch(self, name: str) -> None:
        """Load section *name* and make it the active one."""
        try:
            name = self.store.resolve(name)
            self.store.load(name, self.grid, self.settings.editable_rows)
        except (SectionError, ConfigError) as e:
            self.status = str(e)
            return
        self.section = name
        self.row = self.pos = 0
        self.history.clear()

    def page(self, reverse: bool = False) -> None:
        if self.locked:
            return
        try:
            name = self.store.next(self.section, reverse)
        except ConfigError as e:
            self.status = str(e)
            return
        self.switch(name)

    def home(self) -> None:
        if not self.locked:
            self.switch(DEFAULT_SECTION)

    def new_section(self, clone: bool = False) -> None:
        if self.locked:
            return
        try:
            name = self.store.create(self.section, clone=clone)
        except (SectionError, OSError) as e:
            self.status = str(e)
            return
        self.switch(name)

    # ── Enter ───────────────────────────────────────────────────────────

    def commit(self) -> None:
        """Run the directive or command in the current cell, or move down."""
        if self.locked:
            return
        content = classify(self.text, self.constants)
        try:
            self._dispatch(content)
        except SectionError as e:
            self._reply(str(e))
        except ConfigError as e:
            logger.error("Configuration error during command: %s", e)
            self._reply("Config file has a syntax error.")
        except OSError as e:
            logger.error("Writing %s failed: %s", self.store.path, e)
            self._reply(f"Write failed: {e.strerror or e}")

    def _dispatch(self, content) -> None:
        kind = content.kind
        if kind == CellKind.COMMAND:
            self._run_command(content.argument, content.formula)
        elif kind == CellKind.IMPORT:
            name = self.store.resolve(content.argument)
            self.history.push(self.grid)
            self.store.load(name, self.grid, self.settings.editable_rows)
            self.section = name
            self.pos = len(self.text)
        elif kind == CellKind.CONSTANT:
            if content.formula is None:
                raise SectionError(f"Unknown constant '{content.argument}'.")
            self._reply(content.formula)
        elif kind == CellKind.RATE:
            _ok, output = tools.run_rate()
            self._reply(output)
        elif kind == CellKind.EXTERNAL:
            _ok, output = tools.run_qalc(content.argument)
            self._reply(output)
        else:
            self._goto((self.row + 1) % len(self.grid))

    def _run_command(self, command: str, argument: Optional[str]) -> None:
        if command == "rename":
            self.store.rename(self.section, argument or "")
            self.switch(argument)
        elif command in ("new", "clone"):
            self.switch(self.store.create(self.section, clone=command == "clone"))
        elif command in ("delete", "del"):
            self.store.delete(self.section)
            self.switch(DEFAULT_SECTION)
        elif command in ("clear", "cls"):
            self.history.push(self.grid)
            self.grid.clear()
            self.row = self.pos = 0
