import tomllib
from pathlib import Path

import pytest

from calc.grid import Grid
from tui import storage
from tui.storage import ConfigError, SectionError, SectionStore


def _store(tmp_path: Path, text: str = None) -> SectionStore:
    path = tmp_path / ".func.toml"
    if text is not None:
        path.write_text(text, encoding="utf-8")
    return SectionStore(path)


def _fixed_suffix(monkeypatch, *values: int) -> None:
    seq = iter(values)
    monkeypatch.setattr(storage.random, "randint", lambda a, b: next(seq))


SAMPLE = """\
[0]
A = "1"
B = "a*2"

[budget]
A = "7"
N = "tail"

[remarks]
R0 = "first remark"

[const]
k = "1000.0 # Thousand"

[TUI]
color = "Red"
step = 2
"""


# ── File initialisation ──────────────────────────────────────────────────

def test_missing_file_gets_default_schema(tmp_path: Path) -> None:
    store = _store(tmp_path)
    assert store.catalog() == ["0"]
    assert store.path.exists()

    db = tomllib.loads(store.path.read_text(encoding="utf-8"))
    assert db["0"]["A"] == ""
    assert len(db["0"]) == 14
    assert store.constants() == {"k": "1000.0 # Thousand"}
    assert store.settings().color == "Green"


def test_empty_file_is_initialised(tmp_path: Path) -> None:
    store = _store(tmp_path, "")
    assert store.exists("0")


def test_malformed_file_raises_config_error(tmp_path: Path) -> None:
    store = _store(tmp_path, "[0\nA = ")
    with pytest.raises(ConfigError, match="syntax error"):
        store.catalog()


def test_settings_from_tui_table(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    settings = store.settings()
    assert settings.color == "Red"
    assert settings.step == 2
    assert settings.attribute == "Underlined"
    assert settings.rows == 14


def test_invalid_settings_raise_config_error(tmp_path: Path) -> None:
    store = _store(tmp_path, "[TUI]\nrows = 15\n")
    with pytest.raises(ConfigError):
        store.settings()


def test_backup(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    target = store.backup()
    assert target.name == ".func.toml.bak"
    assert target.read_text(encoding="utf-8") == SAMPLE


def test_backup_without_file(tmp_path: Path) -> None:
    assert _store(tmp_path).backup() is None


# ── Grid transfer ────────────────────────────────────────────────────────

def test_read_grid_and_remarks(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    grid = Grid(14)
    store.read_grid(grid)
    assert grid[0] == "1"
    assert grid[1] == "a*2"
    assert grid[2] == ""
    assert grid.remarks == ["first remark"]


def test_read_grid_heals_missing_default_section(tmp_path: Path) -> None:
    store = _store(tmp_path, '[other]\nA = "3"\n')
    store.read_grid(Grid(14))
    assert store.exists("0")


def test_load_keeps_reserved_tail(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    grid = Grid(14, cells=["x"] * 14)
    store.load("budget", grid, editable_rows=13)
    assert grid[0] == "7"
    assert grid[1] == ""
    assert grid[13] == "x"


def test_load_is_case_insensitive(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    grid = Grid(14)
    store.load("BUDGET", grid)
    assert grid[13] == "tail"


def test_load_missing_section(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    with pytest.raises(SectionError, match="not found"):
        store.load("nope", Grid(14))


def test_save_is_sparse(tmp_path: Path) -> None:
    store = _store(tmp_path)
    grid = Grid(14)
    grid[0] = "1"
    grid[5] = "f+1"
    store.save("0", grid)
    assert store.section("0") == {"A": "1", "F": "f+1"}

    grid[0] = ""
    store.save("0", grid)
    assert store.section("0") == {"F": "f+1"}


def test_save_keeps_other_tables(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    store.save("0", Grid(14, cells=["9"]))
    assert store.constants() == {"k": "1000.0 # Thousand"}
    assert store.section("budget")["A"] == "7"


# ── Catalog management ───────────────────────────────────────────────────

def test_create_empty_section(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path, SAMPLE)
    _fixed_suffix(monkeypatch, 42)
    name = store.create("budget")
    assert name == "budget_42"
    section = store.section(name)
    assert len(section) == 14
    assert all(v == "" for v in section.values())


def test_clone_section(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path, SAMPLE)
    _fixed_suffix(monkeypatch, 42)
    name = store.create("budget", clone=True)
    assert store.section(name) == store.section("budget")


def test_create_retries_on_collision(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path, SAMPLE + '\n[budget_11]\nA = "1"\n')
    _fixed_suffix(monkeypatch, 11, 11, 12)
    assert store.create("budget") == "budget_12"


def test_create_gives_up(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path, SAMPLE + '\n[budget_11]\nA = "1"\n')
    monkeypatch.setattr(storage.random, "randint", lambda a, b: 11)
    with pytest.raises(SectionError):
        store.create("budget")


def test_delete(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    store.delete("budget")
    assert store.catalog() == ["0"]
    with pytest.raises(SectionError):
        store.delete("budget")


def test_default_section_cannot_be_deleted(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    with pytest.raises(SectionError, match="cannot be deleted"):
        store.delete("0")
    assert store.exists("0")


class TestRename:
    def test_rename(self, tmp_path: Path) -> None:
        store = _store(tmp_path, SAMPLE)
        store.rename("budget", "trip")
        assert store.catalog() == ["0", "trip"]
        assert store.section("trip")["A"] == "7"

    @pytest.mark.parametrize("new", ["", "   ", "const", "TUI", "remarks", "0"])
    def test_refused_names(self, tmp_path: Path, new: str) -> None:
        store = _store(tmp_path, SAMPLE)
        with pytest.raises(SectionError):
            store.rename("budget", new)
        assert store.exists("budget")

    def test_default_section_cannot_be_renamed(self, tmp_path: Path) -> None:
        store = _store(tmp_path, SAMPLE)
        with pytest.raises(SectionError):
            store.rename("0", "main")

    def test_missing_source(self, tmp_path: Path) -> None:
        store = _store(tmp_path, SAMPLE)
        with pytest.raises(SectionError, match="Failed to rename"):
            store.rename("nope", "trip")


def test_resolve_returns_stored_spelling(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    assert store.resolve("BUDGET") == "budget"
    with pytest.raises(SectionError):
        store.resolve("nope")


def test_next_from_differently_cased_name(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE + '\n[Alpha]\nA = "1"\n')
    assert store.catalog() == ["0", "Alpha", "budget"]
    assert store.next("ALPHA") == "budget"


def test_next_wraps_in_sorted_order(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE + '\n[alpha]\nA = "1"\n')
    assert store.catalog() == ["0", "alpha", "budget"]
    assert store.next("0") == "alpha"
    assert store.next("budget") == "0"
    assert store.next("0", reverse=True) == "budget"


def test_reserved_tables_are_not_sections(tmp_path: Path) -> None:
    store = _store(tmp_path, SAMPLE)
    assert "const" not in store.catalog()
    assert "TUI" not in store.catalog()
    with pytest.raises(SectionError):
        store.section("const")
