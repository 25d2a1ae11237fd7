"""GridCalc — result formatting with grouped thousands.

Results are shown as ``1,234,567.5``; before a shown value is reused
(substituted into another cell or summed) the separators are stripped again.
"""

SEPARATOR = ","
DEFAULT_PRECISION = 3


def _group_thousands(digits: str) -> str:
    """Insert a separator every three digits, counting from the right."""
    head = len(digits) % 3 or 3
    groups = [digits[:head]]
    for i in range(head, len(digits), 3):
        groups.append(digits[i:i + 3])
    return SEPARATOR.join(groups)


def _strip_trailing_zeros(s: str) -> str:
    """``'7.500'`` → ``'7.5'``, ``'7.000'`` → ``'7'``."""
    if '.' not in s:
        return s
    return s.rstrip('0').rstrip('.')


def format_value(value: float, precision: int = DEFAULT_PRECISION) -> str:
    """Format *value* for the result column.

    - Exact integers have no decimal part (``1000.0`` → ``1,000``).
    - Otherwise *precision* decimals are kept and trailing zeros dropped,
      never leaving a bare decimal point.
    - The integer part is grouped in thousands.
    """
    if value == int(value):
        text = str(abs(int(value)))
    else:
        text = _strip_trailing_zeros(f"{abs(value):.{precision}f}")

    int_part, _, dec_part = text.partition('.')
    negative = value < 0 and text.strip('0.') != ''
    grouped = _group_thousands(int_part)
    if dec_part:
        grouped = f"{grouped}.{dec_part}"
    return f"-{grouped}" if negative else grouped


def strip_separators(text: str) -> str:
    """Remove grouping separators. Safe to apply more than once."""
    return text.replace(SEPARATOR, "")


def parse_value(text: str) -> float:
    """Parse a displayed value back into a float.

    A trailing ``# comment`` and grouping separators are ignored.
    Raises ``ValueError`` when nothing numeric is left.
    """
    body = text.split('#', 1)[0]
    return float(strip_separators(body).strip())
