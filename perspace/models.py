"""Common types shared by the daemon, the backends and the plugins."""

from enum import IntEnum, StrEnum
from typing import TypedDict


class WindowKind(StrEnum):
    """Window types, as advertised through `_NET_WM_WINDOW_TYPE`."""

    NORMAL = "normal"
    DIALOG = "dialog"
    UTILITY = "utility"
    DOCK = "dock"
    DESKTOP = "desktop"
    TOOLBAR = "toolbar"
    MENU = "menu"
    SPLASH = "splash"
    OTHER = "other"


class Direction(IntEnum):
    """Signed workspace index delta requested by a hotkey."""

    UP = -1
    DOWN = 1


class WindowInfo(TypedDict):
    """Window information as returned by a backend."""

    address: str
    title: str
    kind: WindowKind
    workspace: int
    monitor: int


class MonitorInfo(TypedDict):
    """Monitor geometry as returned by a backend."""

    id: int
    name: str
    x: int
    y: int
    width: int
    height: int


class PerspaceError(BaseException):
    """Used for errors which already triggered logging."""


class InvalidStateError(Exception):
    """The desktop reported a state the workspace arithmetic can't handle."""


class ExitCode(IntEnum):
    """Standard exit codes for the perspace client."""

    SUCCESS = 0
    USAGE_ERROR = 1  # No command provided, invalid arguments
    ENV_ERROR = 2  # Missing environment / desktop tools
    CONNECTION_ERROR = 3  # Cannot connect to daemon
    COMMAND_ERROR = 4  # Command execution failed


class ResponsePrefix(StrEnum):
    """Response prefixes for daemon-client communication."""

    OK = "OK"
    ERROR = "ERROR"
