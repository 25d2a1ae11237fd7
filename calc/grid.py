"""GridCalc — the cell grid and the full recompute pass."""

import string
from typing import Optional

from calc.aggregate import DEFAULT_AGGREGATE_ROWS, Aggregate, collect
from calc.engine import DEFAULT_OUTPUT_WIDTH, CellResult, evaluate_cell
from calc.formatting import DEFAULT_PRECISION

GRID_SIZES = (14, 20)


def make_labels(rows: int) -> list[str]:
    """``make_labels(3)`` → ``['A', 'B', 'C']``"""
    if not 0 < rows <= len(string.ascii_uppercase):
        raise ValueError(f"Unsupported grid size: {rows}")
    return list(string.ascii_uppercase[:rows])


class Grid:
    """A fixed number of labelled formula cells plus free-text remarks.

    The number of cells never changes after construction; remarks are shown
    below the grid and never evaluated.
    """

    def __init__(self, rows: int = GRID_SIZES[0],
                 cells: Optional[list[str]] = None,
                 remarks: Optional[list[str]] = None) -> None:
        self.labels = make_labels(rows)
        self.cells: list[str] = [""] * rows
        self.remarks: list[str] = list(remarks or [])
        if cells is not None:
            self.restore(cells)

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, index: int) -> str:
        return self.cells[index]

    def __setitem__(self, index: int, text: str) -> None:
        self.cells[index] = text

    def index_of(self, label: str) -> Optional[int]:
        try:
            return self.labels.index(label.upper())
        except ValueError:
            return None

    def snapshot(self) -> list[str]:
        return list(self.cells)

    def restore(self, cells: list[str]) -> None:
        """Replace the cells, padding or truncating to the grid size."""
        cells = list(cells)[:len(self.cells)]
        self.cells = cells + [""] * (len(self.cells) - len(cells))

    def clear(self, start: int = 0, stop: Optional[int] = None) -> None:
        stop = len(self.cells) if stop is None else min(stop, len(self.cells))
        for i in range(start, stop):
            self.cells[i] = ""

    def last_filled(self) -> Optional[int]:
        """Index of the last non-empty cell, or ``None``."""
        for i in range(len(self.cells) - 1, -1, -1):
            if self.cells[i]:
                return i
        return None

    def filled(self) -> dict[str, str]:
        return {label: text for label, text in zip(self.labels, self.cells) if text}


def recompute(grid: Grid, previous: Aggregate, *,
              constants: Optional[dict[str, str]] = None,
              precision: int = DEFAULT_PRECISION,
              output_width: int = DEFAULT_OUTPUT_WIDTH,
              aggregate_rows: int = DEFAULT_AGGREGATE_ROWS,
              ) -> tuple[list[CellResult], Aggregate]:
    """Evaluate every cell top to bottom.

    Each cell only sees the cells above it. A cell that fails is left out
    of the bindings, so the cells below it cannot pick up a stale value.
    ``z`` is the *previous* pass's total below the aggregate range and
    ``0`` inside it.

    Returns the per-cell results and the aggregate for the next pass.
    """
    bindings: dict[str, str] = {}
    results: list[CellResult] = []
    for i, (label, raw_text) in enumerate(zip(grid.labels, grid.cells)):
        result = evaluate_cell(
            raw_text,
            label=label,
            bindings=bindings,
            aggregate_total=previous.total if i >= aggregate_rows else 0.0,
            constants=constants,
            precision=precision,
            output_width=output_width,
        )
        if result.bindable:
            bindings[label.lower()] = result.display
        else:
            bindings.pop(label.lower(), None)
        results.append(result)
    return results, collect((r.display for r in results), aggregate_rows)
