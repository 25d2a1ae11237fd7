"""GridCalc — expression normaliser.

Turns the raw text of a cell into the canonical form fed to the arithmetic
evaluator: no comment, no whitespace, lowercase unknown ``x``, forced float
division and percentages expanded.
"""

import re

COMMENT_MARK = "#"

_PERCENT_RE = re.compile(r'(\d+(?:\.\d+)?)%')
_WHITESPACE_RE = re.compile(r'\s+')


def split_comment(text: str) -> tuple[str, str]:
    """Split *text* at the first unescaped ``#``.

    Returns ``(body, comment)`` where *comment* keeps the ``#`` and
    everything after it verbatim. ``\\#`` in the body is unescaped to ``#``.
    """
    i = 0
    while True:
        i = text.find(COMMENT_MARK, i)
        if i < 0:
            return text.replace("\\#", "#"), ""
        if i > 0 and text[i - 1] == "\\":
            i += 1
            continue
        return text[:i].replace("\\#", "#"), text[i:]


def strip_comment(text: str) -> str:
    return split_comment(text)[0]


def replace_percentage(expression: str) -> str:
    """``50%`` → ``50*0.01``"""
    return _PERCENT_RE.sub(r'\1*0.01', expression)


def normalize(text: str) -> str:
    """Return the evaluator-ready form of a cell's raw *text*.

    Steps run in a fixed order: comment removal, whitespace removal,
    ``X`` → ``x``, ``/`` → ``*1.0/`` and percentage expansion.
    """
    s = strip_comment(text)
    s = _WHITESPACE_RE.sub("", s)
    s = s.replace("X", "x")
    s = s.replace("/", "*1.0/")
    return replace_percentage(s)
