"""GridCalc — cell-label substitution.

Cells see the values of the cells above them through their labels: with
``A = 10`` the formula ``a*2`` in cell B becomes ``10*2`` before it is
evaluated. Substitution is a single pass over the bindings; a label that has
been replaced by digits can never be matched again.
"""

import re

from calc.formatting import strip_separators

AGGREGATE_TOKEN = "z"


class SelfReferenceError(ValueError):
    """A cell whose whole formula is its own label."""


def check_self_reference(expression: str, label: str) -> None:
    """Raise ``SelfReferenceError`` if *expression* is just *label*."""
    if expression.strip().lower() == label.lower():
        raise SelfReferenceError("Error: Variable self-reference detected")


def _literal(value: str) -> str:
    cleaned = strip_separators(value).strip()
    if cleaned.startswith('-'):
        return f"({cleaned})"
    return cleaned


def substitute(expression: str, bindings: dict[str, str]) -> str:
    """Replace every bound label in *expression* with its value.

    Matching is case-insensitive and whole-token only, so ``a`` is replaced
    in ``a*2`` but not inside ``tan(1)``. The returned expression is
    lowercased.
    """
    if not bindings:
        return expression.lower()
    values = {label.lower(): _literal(value) for label, value in bindings.items()}
    pattern = re.compile(
        r'\b(' + '|'.join(re.escape(label) for label in sorted(values)) + r')\b'
    )
    return pattern.sub(lambda m: values[m.group(1)], expression.lower())


def substitute_aggregate(expression: str, total: float) -> str:
    """Replace the ``z`` token with the aggregate *total*."""
    return re.sub(
        r'\b' + AGGREGATE_TOKEN + r'\b',
        lambda _m: f"({total!r})" if total < 0 else repr(total),
        expression,
    )
