"""GridCalc — the ``Z`` aggregate over the top rows of the grid.

After a full pass the values of the first rows (A-K on a 14-row grid) are
summed. The total is what ``z`` stands for in the *next* pass: the aggregate
of the pass in progress is only known once the pass is over.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from calc.formatting import parse_value

DEFAULT_AGGREGATE_ROWS = 11


class Aggregate(BaseModel):
    """Sum and count of the numeric cells in the aggregate range."""

    model_config = ConfigDict(frozen=True)

    total: float = 0.0
    count: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


def collect(displays: Iterable[str], rows: int = DEFAULT_AGGREGATE_ROWS) -> Aggregate:
    """Sum the numeric *displays* among the first *rows* entries.

    Blank cells, errors and directive placeholders do not parse as numbers
    and are skipped.
    """
    total = 0.0
    count = 0
    for i, display in enumerate(displays):
        if i >= rows:
            break
        try:
            total += parse_value(display)
        except ValueError:
            continue
        count += 1
    return Aggregate(total=total, count=count)
