"""
GridCalc — named sections persisted in one TOML file.

Every top-level table of ``.func.toml`` is a section (label → formula),
except the reserved ``[const]``, ``[remarks]`` and ``[TUI]`` tables. The
file is re-read before and written after every change, so the file on disk
is always the source of truth for the catalog.
"""

import logging
import random
import shutil
import tomllib
from pathlib import Path
from typing import Optional

import tomli_w
from pydantic import ValidationError

from calc.grid import Grid, make_labels
from tui.config import (
    CONFIG_NAME, DEFAULT_SECTION, RESERVED_KEYS, Settings, default_document,
    settings_from_table,
)

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path(__file__).resolve().parent.parent / CONFIG_NAME

_NAME_ATTEMPTS = 20


class ConfigError(Exception):
    """The configuration file exists but cannot be used."""


class SectionError(ValueError):
    """A section command was refused; the message is shown to the user."""


def _syntax_message(path: Path) -> str:
    return (
        f"- The configuration file {path.name} has a syntax error!\n\n"
        "- Please locate it in the working directory and check it,\n"
        "- or you can delete it to restore the factory settings.\n"
    )


class SectionStore:
    """Load, save and manage the sections of one configuration file."""

    def __init__(self, path: Path | str = DEFAULT_PATH,
                 rows: int = Settings().rows) -> None:
        self.path = Path(path)
        self.rows = rows

    # ── File access ─────────────────────────────────────────────────────

    def _load_db(self) -> dict:
        if not self.path.exists() or self.path.stat().st_size == 0:
            logger.info("Initialising %s with the default schema", self.path)
            db = default_document(self.rows)
            self._save_db(db)
            return db
        try:
            db = tomllib.loads(self.path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            logger.error("Cannot parse %s: %s", self.path, e)
            raise ConfigError(_syntax_message(self.path)) from e
        return db

    def _save_db(self, db: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "wb") as f:
            tomli_w.dump(db, f)
        logger.debug("Wrote %s", self.path)

    def backup(self) -> Optional[Path]:
        """Copy the file to ``<name>.bak`` (done once, before the first load)."""
        if not self.path.exists():
            return None
        target = self.path.with_name(self.path.name + ".bak")
        shutil.copy2(self.path, target)
        logger.info("Backed up %s to %s", self.path, target)
        return target

    # ── Lookups ─────────────────────────────────────────────────────────

    @staticmethod
    def _reserved(db: dict, key: str) -> dict:
        for k, v in db.items():
            if k.lower() == key and isinstance(v, dict):
                return v
        return {}

    @staticmethod
    def _find(db: dict, name: str) -> Optional[str]:
        """Actual key of section *name* (exact match first, then any case)."""
        if name in db and isinstance(db[name], dict) and name.lower() not in RESERVED_KEYS:
            return name
        for key in _section_keys(db):
            if key.lower() == name.lower():
                return key
        return None

    def resolve(self, name: str) -> str:
        """Stored spelling of section *name*; raises ``SectionError`` if absent."""
        key = self._find(self._load_db(), name)
        if key is None:
            raise SectionError(f"Section '{name}' not found.")
        return key

    def catalog(self) -> list[str]:
        return sorted(_section_keys(self._load_db()))

    def exists(self, name: str) -> bool:
        return self._find(self._load_db(), name) is not None

    def section(self, name: str) -> dict[str, str]:
        db = self._load_db()
        key = self.resolve(name)
        return {k: v for k, v in db[key].items() if isinstance(v, str)}

    def constants(self) -> dict[str, str]:
        table = self._reserved(self._load_db(), "const")
        return {k: v for k, v in table.items() if isinstance(v, str)}

    def remarks(self) -> list[str]:
        table = self._reserved(self._load_db(), "remarks")
        return [v for v in table.values() if isinstance(v, str)]

    def settings(self) -> Settings:
        try:
            return settings_from_table(self._reserved(self._load_db(), "tui"))
        except ValidationError as e:
            raise ConfigError(
                f"- The [TUI] table of {self.path.name} is invalid:\n\n{e}\n"
            ) from e

    # ── Grid transfer ───────────────────────────────────────────────────

    def load(self, name: str, grid: Grid, editable_rows: Optional[int] = None) -> None:
        """Replace the editable rows of *grid* with section *name*.

        Rows past *editable_rows* are kept; labels missing from the section
        leave their cell blank.
        """
        stored = self.section(name)
        limit = len(grid) if editable_rows is None else editable_rows
        grid.clear(0, limit)
        for label, text in stored.items():
            index = grid.index_of(label)
            if index is not None and index < limit:
                grid[index] = text
        logger.info("Loaded section %r", name)

    def read_grid(self, grid: Grid) -> None:
        """Fill *grid* from the default section and the remarks table."""
        db = self._load_db()
        if self._find(db, DEFAULT_SECTION) is None:
            db[DEFAULT_SECTION] = _template(grid.labels)
            self._save_db(db)
        self.load(DEFAULT_SECTION, grid)
        grid.remarks = self.remarks()

    def save(self, name: str, grid: Grid) -> None:
        """Merge *grid* into section *name*; empty cells are removed."""
        db = self._load_db()
        key = self._find(db, name) or name
        table = dict(db.get(key, {}))
        for label, text in zip(grid.labels, grid.cells):
            if text:
                table[label] = text
            else:
                table.pop(label, None)
        db[key] = table
        self._save_db(db)
        logger.info("Saved section %r", key)

    # ── Catalog management ──────────────────────────────────────────────

    def create(self, base: str, clone: bool = False) -> str:
        """Add ``<base>_<NN>`` as an empty template or a copy of *base*."""
        db = self._load_db()
        source = self._find(db, base)
        if clone and source is None:
            raise SectionError(f"Section '{base}' not found.")
        for _ in range(_NAME_ATTEMPTS):
            name = f"{base}_{random.randint(10, 99)}"
            if self._find(db, name) is None:
                break
        else:
            raise SectionError("Could not find a free section name.")

        if clone:
            db[name] = dict(db[source])
        else:
            db[name] = _template(make_labels(self.rows))
        self._save_db(db)
        logger.info("%s section %r as %r", "Cloned" if clone else "Created", base, name)
        return name

    def delete(self, name: str) -> None:
        """Remove section *name*; the default section always survives."""
        if name.lower() == DEFAULT_SECTION:
            raise SectionError("The default section cannot be deleted.")
        db = self._load_db()
        key = self._find(db, name)
        if key is None:
            raise SectionError(f"Section '{name}' not found.")
        del db[key]
        if self._find(db, DEFAULT_SECTION) is None:
            db[DEFAULT_SECTION] = _template(make_labels(self.rows))
        self._save_db(db)
        logger.info("Deleted section %r", key)

    def rename(self, old: str, new: str) -> None:
        new = new.strip()
        if not new:
            raise SectionError("Invalid new section name.")
        if new.lower() in RESERVED_KEYS:
            raise SectionError(f"'{new}' is a reserved name.")
        if old.lower() == DEFAULT_SECTION:
            raise SectionError("The default section cannot be renamed.")
        db = self._load_db()
        key = self._find(db, old)
        if key is None:
            raise SectionError("Failed to rename section.")
        if self._find(db, new) is not None:
            raise SectionError(f"Section '{new}' already exists.")
        db[new] = db.pop(key)
        self._save_db(db)
        logger.info("Renamed section %r to %r", key, new)

    def next(self, name: str, reverse: bool = False) -> str:
        """The section after (or before) *name* in sorted order, wrapping."""
        keys = self.catalog()
        if not keys:
            return DEFAULT_SECTION
        current = self._find(self._load_db(), name)
        index = keys.index(current) if current in keys else 0
        step = -1 if reverse else 1
        return keys[(index + step) % len(keys)]


def _section_keys(db: dict) -> list[str]:
    return [k for k, v in db.items()
            if isinstance(v, dict) and k.lower() not in RESERVED_KEYS]


def _template(labels: list[str]) -> dict[str, str]:
    return {label: "" for label in labels}
