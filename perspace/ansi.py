"""ANSI terminal color utilities.

Only what the log formatters need: NO_COLOR / FORCE_COLOR aware styling.
"""

import os
import sys
from typing import TextIO

__all__ = [
    "HandlerStyles",
    "LogStyles",
    "colorize",
    "make_style",
    "should_colorize",
]

_ESC = "\x1b["

RESET = f"{_ESC}0m"

BOLD = "1"
DIM = "2"

BLACK = "30"
RED = "31"
YELLOW = "33"
BLUE = "34"


def should_colorize(stream: TextIO | None = None) -> bool:
    """Determine if ANSI colors should be used for the given stream.

    `NO_COLOR` always wins, `FORCE_COLOR` forces colors, otherwise colors are
    only used on a TTY (stderr by default).
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text: str, *codes: str) -> str:
    """Wrap text in ANSI color codes."""
    if not codes:
        return text
    return f"{_ESC}{';'.join(codes)}m{text}{RESET}"


def make_style(*codes: str) -> tuple[str, str]:
    """Create a style (prefix, suffix) pair for use in formatters."""
    if not codes:
        return ("", RESET)
    return (f"{_ESC}{';'.join(codes)}m", RESET)


class LogStyles:
    """Pre-built styles for log levels."""

    WARNING = (YELLOW, DIM)
    ERROR = (RED, DIM)
    CRITICAL = (RED, BOLD)


class HandlerStyles:
    """Pre-built styles for handler logging."""

    COMMAND = (YELLOW, BOLD)  # run_* methods
    EVENT = (BLUE, BOLD)  # event_* methods
