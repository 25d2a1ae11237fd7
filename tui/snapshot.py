"""
GridCalc — flat grid snapshot files.

One ``Label=formula`` line per cell in label order, followed by the remark
lines verbatim::

    A=1200
    B=a*15%
    ...
    N=
    Rent and deposit, March
"""

import logging
from pathlib import Path

from calc.grid import Grid

logger = logging.getLogger(__name__)


def read_snapshot(path: Path | str, grid: Grid) -> None:
    """Fill *grid* from *path*; a missing or empty file is created blank."""
    path = Path(path)
    if not path.exists() or path.stat().st_size == 0:
        write_snapshot(path, grid)
        return

    lines = path.read_text(encoding="utf-8").splitlines()
    cells = lines[:len(grid)]
    for i, line in enumerate(cells):
        label, sep, text = line.partition("=")
        if sep and label.strip().upper() == grid.labels[i]:
            grid[i] = text
        else:
            grid[i] = line
    grid.remarks = lines[len(grid):]
    logger.info("Read grid snapshot %s", path)


def write_snapshot(path: Path | str, grid: Grid) -> None:
    path = Path(path)
    lines = [f"{label}={text}" for label, text in zip(grid.labels, grid.cells)]
    lines.extend(grid.remarks)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info("Wrote grid snapshot %s", path)
