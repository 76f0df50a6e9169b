"""Client-side functions for the perspace CLI."""

import asyncio
import sys

from .adapters.proxy import BackendProxy
from .adapters.xorg import XorgBackend
from .common import get_logger
from .constants import CONTROL
from .models import ExitCode, ResponsePrefix

__all__ = ["parse_response", "run_client"]


def parse_response(return_value: str) -> tuple[ExitCode, str]:
    """Split a daemon response into an exit code and the text to show.

    Args:
        return_value: Raw response, as sent by the daemon
    """
    if return_value.startswith(f"{ResponsePrefix.ERROR}:"):
        return ExitCode.COMMAND_ERROR, return_value[len(ResponsePrefix.ERROR) + 2 :].strip()
    if return_value.startswith(ResponsePrefix.OK):
        return ExitCode.SUCCESS, return_value[len(ResponsePrefix.OK) :].strip()
    return ExitCode.SUCCESS, return_value.rstrip()


async def run_client(args: list[str]) -> None:
    """Send the command in `args` to the daemon and print the response."""
    log = get_logger("client")

    if args[0] in {"--help", "-h"}:
        args[0] = "help"

    try:
        reader, writer = await asyncio.open_unix_connection(CONTROL)
    except (ConnectionRefusedError, FileNotFoundError):
        log.critical(
            "Cannot connect to perspace daemon at %s.\nIs the daemon running? Start it with: perspace (no arguments)",
            CONTROL,
        )
        await BackendProxy(XorgBackend(), log).notify_error("Perspace can't connect. Is daemon running?")
        sys.exit(ExitCode.CONNECTION_ERROR)

    args[0] = args[0].replace("-", "_")
    writer.write((" ".join(args) + "\n").encode())
    writer.write_eof()
    await writer.drain()
    return_value = (await reader.read()).decode("utf-8")
    writer.close()
    await writer.wait_closed()

    code, text = parse_response(return_value)
    if code == ExitCode.SUCCESS:
        if text:
            print(text)
    else:
        print(f"Error: {text}", file=sys.stderr)
    sys.exit(code)
