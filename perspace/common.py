"""Shared utilities: dict merging and subprocess helpers."""

import asyncio
from logging import Logger
from typing import Any

from .logging_setup import get_logger, init_logger

__all__ = [
    "get_logger",
    "init_logger",
    "merge",
    "run_command",
]


def merge(merged: dict[str, Any], obj2: dict[str, Any], replace: bool = False) -> dict[str, Any]:
    """Merge the content of obj2 into merged.

    Args:
        merged: Dictionary to merge into
        obj2: Dictionary to merge from
        replace: If True, lists are replaced instead of concatenated

    Returns:
        `merged` dictionary with the merged content

    Eg:
        merge({"a": {"b": 1}}, {"a": {"c": 2}}) == {"a": {"b": 1, "c": 2}}
    """
    for key, value in obj2.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merge(merged[key], value, replace)
        elif key in merged and isinstance(merged[key], list) and isinstance(value, list) and not replace:
            merged[key] += value
        else:
            merged[key] = value
    return merged


async def run_command(command: str, *, log: Logger) -> str | None:
    """Run a shell command and return its standard output.

    Returns None (after logging) if the command can't be started or fails.
    """
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
    except OSError as e:
        log.warning("Failed to run %s: %s", command, e)
        return None
    if proc.returncode != 0:
        log.error("%s failed: %s", command, stderr.decode(errors="replace").strip())
        return None
    return stdout.decode(errors="replace")

