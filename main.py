"""
GridCalc — Entry point.

Open the grid file (the configuration file unless one is given) and run
the terminal calculator until Ctrl-C.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from tui import __version__
from tui.app import run
from tui.session import Session
from tui.storage import DEFAULT_PATH, ConfigError, SectionStore

LOG_NAME = ".gridcalc.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("gridcalc")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gridcalc",
        description="Terminal grid calculator with cell variables and saved sections.",
    )
    parser.add_argument(
        "filename", nargs="?", default=None,
        help="grid file to open (default: the .func.toml configuration file)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def setup_logger(log_file: Path) -> None:
    """File handler only; the terminal belongs to curses."""
    level_name = os.environ.get("GRIDCALC_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    try:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        # Read-only install directory: run without a log file.
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def wait_for_keypress() -> None:
    try:
        input("Press Enter to exit...")
    except EOFError:
        pass


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logger(DEFAULT_PATH.with_name(LOG_NAME))

    store = SectionStore(DEFAULT_PATH)
    grid_path = Path(args.filename) if args.filename else None
    try:
        session = Session.open(store, grid_path)
    except ConfigError as e:
        logger.error("Cannot start: %s", e)
        print(e, file=sys.stderr)
        wait_for_keypress()
        return 1

    run(session)
    logger.info("Exited normally")
    return 0


if __name__ == "__main__":
    sys.exit(main())
