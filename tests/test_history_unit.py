from calc.grid import Grid
from tui.history import MAX_UNDO, UndoHistory


def test_push_pop_is_lifo() -> None:
    grid = Grid(14)
    history = UndoHistory()
    grid[0] = "1"
    history.push(grid)
    grid[0] = "2"
    history.push(grid)

    assert history.pop()[0] == "2"
    assert history.pop()[0] == "1"
    assert history.pop() is None


def test_capacity_drops_oldest() -> None:
    grid = Grid(14)
    history = UndoHistory()
    for i in range(MAX_UNDO + 5):
        grid[0] = str(i)
        history.push(grid)

    assert len(history) == MAX_UNDO
    popped = [history.pop()[0] for _ in range(MAX_UNDO)]
    assert popped[0] == str(MAX_UNDO + 4)
    assert popped[-1] == "5"
    assert history.pop() is None


def test_snapshots_do_not_alias_grid() -> None:
    grid = Grid(14)
    history = UndoHistory(capacity=3)
    history.push(grid)
    grid[0] = "changed"
    assert history.pop()[0] == ""


def test_clear() -> None:
    history = UndoHistory()
    history.push(Grid(14))
    history.clear()
    assert len(history) == 0
