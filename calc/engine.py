""" Cell evaluation: directives, linear equations and plain arithmetic."""

"""
Each cell is classified once into a ``CellKind`` and then evaluated:

  - directives (``fc.sec``, ``cst.k``, ``s:expr``, ``rate``, section
    commands) show a placeholder and are acted on when the user presses
    Enter;
  - equations with exactly one ``=`` are either checked for balance or
    solved for the unknown ``x`` (linear case only);
  - everything else is plain arithmetic handed to SymPy.

``evaluate_cell`` never raises: every failure becomes a ``CellResult`` with
``display == "Error"``.
"""

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sympy import Symbol
from sympy.parsing.sympy_parser import (
    parse_expr, standard_transformations, implicit_multiplication_application,
    convert_xor,
)

from calc.formatting import DEFAULT_PRECISION, format_value
from calc.normalize import normalize, replace_percentage
from calc.variables import check_self_reference, substitute, substitute_aggregate

TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,  # "^" is power, as on a pocket calculator
)

UNKNOWN = Symbol("x")

ERROR = "Error"
DEFAULT_OUTPUT_WIDTH = 23

PLACEHOLDERS = {
    "import": "Import from cfg file",
    "external": "Qalculate!",
    "rate": "Fetch exchange rate",
}

COMMANDS = {"new", "clone", "delete", "del", "clear", "cls"}


class EvaluationError(ValueError):
    """A cell's formula could not be turned into a number."""


class UnbalancedEquationError(EvaluationError):
    pass


class NonLinearEquationError(EvaluationError):
    pass


class CellKind(str, Enum):
    EMPTY = "empty"
    COMMAND = "command"
    IMPORT = "import"
    CONSTANT = "constant"
    EXTERNAL = "external"
    RATE = "rate"
    EQUATION = "equation"
    EXPRESSION = "expression"


class CellContent(BaseModel):
    """What a cell's raw text is, decided once per evaluation."""

    kind: CellKind
    argument: str = ""
    formula: Optional[str] = None  # looked-up text for CONSTANT


class CellResult(BaseModel):
    label: str
    kind: CellKind
    display: str = ""
    value: Optional[float] = None
    is_error: bool = False
    message: Optional[str] = None

    @property
    def bindable(self) -> bool:
        """True when other cells may use this cell's value."""
        return self.value is not None and not self.is_error


# ── Classification ──────────────────────────────────────────────────────

def classify(raw_text: str, constants: Optional[dict[str, str]] = None) -> CellContent:
    """Decide what kind of content *raw_text* holds."""
    text = raw_text.strip()
    if not text:
        return CellContent(kind=CellKind.EMPTY)
    lowered = text.lower()
    table = {k.lower(): v for k, v in (constants or {}).items()}

    if lowered.startswith(("fc.", "fc:")):
        return CellContent(kind=CellKind.IMPORT, argument=lowered[3:].strip())
    if lowered.startswith("cst."):
        key = lowered[4:].strip()
        return CellContent(kind=CellKind.CONSTANT, argument=key, formula=table.get(key))
    if lowered in table:
        return CellContent(kind=CellKind.CONSTANT, argument=lowered, formula=table[lowered])
    if lowered.startswith("s:"):
        return CellContent(kind=CellKind.EXTERNAL, argument=text[2:].strip())
    if lowered == "rate":
        return CellContent(kind=CellKind.RATE)
    if lowered in COMMANDS:
        return CellContent(kind=CellKind.COMMAND, argument=lowered)
    if lowered == "rename" or lowered.startswith("rename "):
        parts = text.split()
        return CellContent(kind=CellKind.COMMAND, argument="rename",
                           formula=parts[1] if len(parts) > 1 else "")
    if normalize(text).count("=") == 1:
        return CellContent(kind=CellKind.EQUATION)
    return CellContent(kind=CellKind.EXPRESSION)


# ── Arithmetic primitive ────────────────────────────────────────────────

def _parse(expression: str):
    try:
        return parse_expr(expression, local_dict={"x": UNKNOWN},
                          transformations=TRANSFORMATIONS)
    except Exception as e:
        raise EvaluationError(f"Could not parse expression: '{expression}'. Error: {e}")


def _numeric(expr) -> float:
    """Reduce a parsed expression to a finite real float."""
    free = getattr(expr, "free_symbols", set())
    if free:
        names = ", ".join(sorted(str(s) for s in free))
        raise EvaluationError(f"Unresolved variable(s): {names}")
    try:
        value = complex(expr)
    except (TypeError, ValueError, AttributeError, OverflowError) as e:
        raise EvaluationError(f"Result is not a number: {expr}") from e
    if value.imag != 0:
        raise EvaluationError("Result is complex")
    if not math.isfinite(value.real):
        raise EvaluationError("Result is not finite")
    return value.real


def evaluate_arithmetic(expression: str) -> float:
    """Evaluate normalized infix arithmetic to a float.

    *expression* must already be free of cell labels and percent signs.
    Raises ``EvaluationError`` on any failure.
    """
    return _numeric(_parse(expression))


def _at(expr, value: float):
    subs = getattr(expr, "subs", None)
    return subs(UNKNOWN, value) if subs is not None else expr


def solve_equation(lhs_text: str, rhs_text: str) -> float:
    """Balance-check or solve ``lhs = rhs`` for ``x``.

    Without ``x`` the common value of both sides is returned. With ``x``
    the equation is treated as linear in the left side: with ``L0``, ``L1``
    the left side at ``x = 0`` and ``x = 1`` and ``R0`` the right side at
    ``x = 0``, the root is ``(R0 - L0) / (L1 - L0)``. An ``x`` on the right
    only contributes its value at 0, and equations that are not linear in
    ``x`` are not detected; both give a wrong root.
    """
    lhs = _parse(lhs_text)
    rhs = _parse(rhs_text)
    has_unknown = any(UNKNOWN in getattr(side, "free_symbols", set())
                      for side in (lhs, rhs))

    if not has_unknown:
        left, right = _numeric(lhs), _numeric(rhs)
        if math.isclose(left, right, rel_tol=1e-9, abs_tol=1e-12):
            return left
        raise UnbalancedEquationError("The equation is not balanced")

    l0 = _numeric(_at(lhs, 0.0))
    l1 = _numeric(_at(lhs, 1.0))
    r0 = _numeric(_at(rhs, 0.0))
    coefficient = l1 - l0
    if coefficient == 0:
        raise NonLinearEquationError(
            "Invalid equation: coefficient of x is zero or not a linear equation"
        )
    return (r0 - l0) / coefficient


# ── Cell evaluation ─────────────────────────────────────────────────────

def _prepare(text: str, bindings: dict[str, str], aggregate_total: float) -> str:
    s = substitute(text, bindings)
    s = substitute_aggregate(s, aggregate_total)
    return replace_percentage(s)


def _compute(raw_text: str, content: CellContent, label: str,
             bindings: dict[str, str], aggregate_total: float) -> float:
    if content.kind == CellKind.CONSTANT:
        if content.formula is None:
            raise EvaluationError(f"Unknown constant: '{content.argument}'")
        raw_text = content.formula

    normalized = normalize(raw_text)
    check_self_reference(normalized, label)

    parts = normalized.split("=")
    if len(parts) == 2:
        lhs = _prepare(parts[0], bindings, aggregate_total)
        rhs = _prepare(parts[1], bindings, aggregate_total)
        return solve_equation(lhs, rhs)
    if len(parts) == 1:
        return evaluate_arithmetic(_prepare(normalized, bindings, aggregate_total))
    raise EvaluationError(
        "Invalid input format. Use a linear equation 'a*x + b = c' "
        "or a mathematical expression."
    )


def evaluate_cell(raw_text: str, *, label: str, bindings: dict[str, str],
                  aggregate_total: float = 0.0,
                  constants: Optional[dict[str, str]] = None,
                  precision: int = DEFAULT_PRECISION,
                  output_width: int = DEFAULT_OUTPUT_WIDTH) -> CellResult:
    """Evaluate one cell against the *bindings* of the cells above it."""
    content = classify(raw_text, constants)
    if (content.kind == CellKind.CONSTANT and content.argument in bindings
            and not raw_text.strip().lower().startswith("cst.")):
        # A bound cell label shadows a bare constant keyword.
        content = CellContent(kind=CellKind.EXPRESSION)
    kind = content.kind

    if kind in (CellKind.EMPTY, CellKind.COMMAND):
        return CellResult(label=label, kind=kind)
    if kind.value in PLACEHOLDERS:
        return CellResult(label=label, kind=kind, display=PLACEHOLDERS[kind.value])

    try:
        value = _compute(raw_text, content, label, bindings, aggregate_total)
    except ValueError as e:
        return CellResult(label=label, kind=kind, display=ERROR,
                          is_error=True, message=str(e))

    display = format_value(value, precision)
    if len(display) > output_width - 3:
        return CellResult(label=label, kind=kind, display=ERROR, is_error=True,
                          message="Result is too wide for the output column")
    return CellResult(label=label, kind=kind, display=display, value=value)
