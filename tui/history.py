"""GridCalc — undo history of whole-grid snapshots."""

from typing import Optional

from calc.grid import Grid

MAX_UNDO = 100


class UndoHistory:
    """Bounded stack of grid snapshots; the oldest entry is dropped first.

    A snapshot is pushed *before* the edit it guards, so popping it
    restores the grid as it was just before that edit.
    """

    def __init__(self, capacity: int = MAX_UNDO) -> None:
        self.capacity = capacity
        self._stack: list[list[str]] = []

    def __len__(self) -> int:
        return len(self._stack)

    def push(self, grid: Grid) -> None:
        self._stack.append(grid.snapshot())
        # Keep last `capacity` entries
        if len(self._stack) > self.capacity:
            del self._stack[0]

    def pop(self) -> Optional[list[str]]:
        """Most recent snapshot, or ``None`` when there is nothing to undo."""
        return self._stack.pop() if self._stack else None

    def clear(self) -> None:
        self._stack.clear()
