"""
GridCalc — external helper programs.

``s:<expr>`` hands the expression to ``qalc`` (Qalculate!) and ``rate``
runs the exchange-rate fetcher shipped next to the program. Both return
``(ok, text)``; *text* is the trimmed output on success and a short
message on failure, ready to be written into the cell.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PROGRAM_DIR = Path(__file__).resolve().parent.parent

QALC_FAILED = "Failed to execute qalc command."
RATE_MISSING = "The rate command was not found!"

TIMEOUT = 30


def _run(cmd: list[str]) -> Optional[str]:
    """Trimmed stdout of *cmd*, or ``None`` if it could not be run."""
    logger.info("Running %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True,
                              timeout=TIMEOUT, check=False)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Running %s failed: %s", cmd[0], exc)
        return None
    if proc.returncode != 0:
        logger.warning("%s exited with status %d: %s", cmd[0], proc.returncode,
                       proc.stderr.strip())
        return None
    return proc.stdout.strip()


def run_qalc(expression: str) -> tuple[bool, str]:
    """Evaluate *expression* with ``qalc -t``."""
    local = PROGRAM_DIR / "qalc" / "qalc.exe"
    program = str(local) if local.exists() else shutil.which("qalc")
    if program is None:
        return False, QALC_FAILED
    output = _run([program, "-t", expression])
    if not output:
        return False, QALC_FAILED
    return True, output


def run_rate() -> tuple[bool, str]:
    """Fetch the current exchange rate line (``6.5432 # BOC (...)``)."""
    for candidate in (PROGRAM_DIR / "rate", PROGRAM_DIR / "rate.exe"):
        if candidate.exists():
            program = str(candidate)
            break
    else:
        program = shutil.which("rate")
    if program is None:
        return False, RATE_MISSING
    output = _run([program])
    if output is None:
        return False, RATE_MISSING
    return True, output
