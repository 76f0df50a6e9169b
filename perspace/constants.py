"""Shared constants for perspace."""

import os
from pathlib import Path

__all__ = [
    "CONFIG_FILE",
    "CONTROL",
    "DEFAULT_INCOMPATIBLE_EXTENSIONS",
    "DEFAULT_NOTIFICATION_DURATION_MS",
    "ERROR_NOTIFICATION_DURATION_MS",
    "EVENT_STREAM_MAX_RETRIES",
    "TASK_TIMEOUT",
]

_runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
CONTROL = f"{_runtime_dir}/perspace.sock" if _runtime_dir else f"/tmp/perspace-{os.getuid()}.sock"  # noqa: S108

_xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
CONFIG_FILE = _xdg_config_home / "perspace" / "config.toml"

TASK_TIMEOUT = 35.0

# Notification durations (milliseconds)
DEFAULT_NOTIFICATION_DURATION_MS = 5000
ERROR_NOTIFICATION_DURATION_MS = 8000

EVENT_STREAM_MAX_RETRIES = 10

# Docks which grab windows from every workspace and confuse the resync
DEFAULT_INCOMPATIBLE_EXTENSIONS = [
    "dash-to-dock@micxgx.gmail.com",
    "ubuntu-dock@ubuntu.com",
]
