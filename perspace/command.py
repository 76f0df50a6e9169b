"""Perspace - per-monitor workspaces for X11 desktops (cli client & daemon)."""

import asyncio
import os
import sys

from .client import run_client
from .common import get_logger, init_logger
from .constants import CONTROL
from .daemon import run_daemon
from .models import ExitCode, PerspaceError

__all__ = ["main", "use_param"]


def use_param(txt: str, args: list[str] | None = None) -> str:
    """Check if parameter `txt` is in `args` (sys.argv by default).

    if found, removes it from the list & returns the argument value

    Args:
        txt: The parameter name, eg: "--debug"
        args: The argument list to look into
    """
    if args is None:
        args = sys.argv
    v = ""
    if txt in args:
        i = args.index(txt)
        if i + 1 >= len(args):
            print(f"Missing value for {txt}", file=sys.stderr)
            sys.exit(ExitCode.USAGE_ERROR)
        v = args[i + 1]
        del args[i : i + 2]
    return v


def main() -> None:
    """Run the command."""
    debug_flag = use_param("--debug")
    if debug_flag:
        init_logger(filename=debug_flag, force_debug=True)
    else:
        init_logger()
    log = get_logger("startup")

    config_override = use_param("--config")

    invoke_daemon = len(sys.argv) <= 1
    if invoke_daemon and os.path.exists(CONTROL):
        log.critical(
            """%s exists,
is perspace already running ?
If that's not the case, delete this file and run again.""",
            CONTROL,
        )
        sys.exit(ExitCode.ENV_ERROR)

    try:
        asyncio.run(run_daemon(config_override) if invoke_daemon else run_client(sys.argv[1:]))
    except KeyboardInterrupt:
        pass
    except PerspaceError:
        log.critical("Command failed.")
        sys.exit(ExitCode.ENV_ERROR)
    except Exception:  # pylint: disable=W0718
        log.critical("Unhandled exception:", exc_info=True)
        sys.exit(ExitCode.COMMAND_ERROR)
    finally:
        if invoke_daemon and os.path.exists(CONTROL):
            os.unlink(CONTROL)


if __name__ == "__main__":
    main()
