"""GridCalc evaluation core."""

from calc.aggregate import Aggregate
from calc.engine import CellKind, CellResult, classify, evaluate_cell
from calc.grid import Grid, recompute

__all__ = [
    "Aggregate",
    "CellKind",
    "CellResult",
    "Grid",
    "classify",
    "evaluate_cell",
    "recompute",
]
