"""Daemon startup functions for perspace."""

import asyncio
import itertools
from pathlib import Path

from .constants import CONTROL, EVENT_STREAM_MAX_RETRIES
from .manager import Perspace
from .models import PerspaceError

__all__ = ["get_event_stream_with_retry", "run_daemon"]


async def get_event_stream_with_retry(
    manager: Perspace,
    max_retry: int = EVENT_STREAM_MAX_RETRIES,
) -> asyncio.StreamReader | BaseException:
    """Obtain the event stream, retrying if it fails.

    If retry count is exhausted, returns the last exception.

    Args:
        manager: The initialized manager
        max_retry: Maximum number of retries
    """
    err_count = itertools.count()
    while True:
        attempt = next(err_count)
        try:
            return await manager.backend.get_event_stream()
        except (OSError, PerspaceError) as e:
            if attempt >= max_retry:
                return e
            await asyncio.sleep(1)


async def run_daemon(config_file: str = "") -> None:
    """Run the server / daemon."""
    manager = Perspace(config_file)

    control_folder = Path(CONTROL).parent
    try:
        control_folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        manager.log.critical("Cannot create control folder %s: %s", control_folder, e)
        return

    await manager.initialize()

    result = await get_event_stream_with_retry(manager)
    if isinstance(result, BaseException):
        manager.log.warning("Failed to open the desktop event stream: %s.", result)
        await manager.backend.notify_error("Perspace can't watch workspace changes, only commands will work")
    else:
        manager.event_reader = result

    # Start server after initialization to avoid race conditions with plugin loading
    manager.server = await asyncio.start_unix_server(manager.read_command, CONTROL)

    manager.log.debug("[ initialized ]".center(80, "="))

    try:
        await manager.run()
    except KeyboardInterrupt:
        print("Interrupted")
    except asyncio.CancelledError:
        manager.log.critical("cancelled")
