"""Backend adapter interface."""

import asyncio
from abc import ABC, abstractmethod
from logging import Logger
from typing import Any

from ..constants import DEFAULT_NOTIFICATION_DURATION_MS
from ..models import MonitorInfo, WindowInfo


class WindowingBackend(ABC):
    """Abstract base class for windowing system backends.

    All methods that perform logging require a `log` parameter to be passed.
    This allows the calling code (via BackendProxy) to inject the appropriate
    logger for traceability.

    Workspaces and monitors are identified by their index; windows by an
    opaque address string.
    """

    @classmethod
    @abstractmethod
    async def is_available(cls) -> bool:
        """Check if the tools this backend drives are usable."""

    # Queries

    @abstractmethod
    async def get_windows(self, *, log: Logger) -> list[WindowInfo]:
        """Return the top-level windows.

        Args:
            log: Logger to use for this operation
        """

    async def get_window(self, address: str, *, log: Logger) -> WindowInfo | None:
        """Return the window with the given address, None if it's gone.

        Args:
            address: Window address
            log: Logger to use for this operation
        """
        for window in await self.get_windows(log=log):
            if window["address"] == address:
                return window
        return None

    async def get_window_workspace(self, address: str, *, log: Logger) -> int | None:
        """Return the workspace index of a window, None if it's gone.

        Args:
            address: Window address
            log: Logger to use for this operation
        """
        window = await self.get_window(address, log=log)
        return None if window is None else window["workspace"]

    @abstractmethod
    async def get_monitors(self, *, log: Logger) -> list[MonitorInfo]:
        """Return the active monitors, ordered by index.

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    async def workspace_count(self, *, log: Logger) -> int:
        """Return the number of workspaces (0 if it can't be read).

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    async def active_workspace_index(self, *, log: Logger) -> int:
        """Return the index of the active workspace (-1 if it can't be read).

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    async def focused_monitor_index(self, *, log: Logger) -> int:
        """Return the index of the monitor currently holding the focus.

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    async def enabled_extensions(self, *, log: Logger) -> list[str]:
        """Return the identifiers of the enabled desktop extensions.

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    async def dynamic_workspaces_enabled(self, *, log: Logger) -> bool:
        """Return True if the desktop creates and removes workspaces on its own.

        Args:
            log: Logger to use for this operation
        """

    # Actions

    @abstractmethod
    async def move_window_to_workspace(self, address: str, index: int, *, log: Logger) -> bool:
        """Move a window to a workspace, without following it.

        Args:
            address: Window address
            index: Target workspace index
            log: Logger to use for this operation

        Returns:
            True if command succeeded
        """

    @abstractmethod
    async def activate_window(self, address: str, *, log: Logger) -> bool:
        """Focus a window, switching to its workspace if needed.

        Args:
            address: Window address
            log: Logger to use for this operation

        Returns:
            True if command succeeded
        """

    # Events

    @abstractmethod
    async def get_event_stream(self, *, log: Logger) -> asyncio.StreamReader:
        """Return a line oriented stream of raw desktop events.

        Args:
            log: Logger to use for this operation
        """

    @abstractmethod
    def parse_event(self, raw_data: str, *, log: Logger) -> tuple[str, Any] | None:
        """Parse a raw event string into (event_name, event_data).

        Args:
            raw_data: Raw event line
            log: Logger to use for this operation
        """

    async def close(self, *, log: Logger) -> None:
        """Release the resources held for the event stream.

        Args:
            log: Logger to use for this operation
        """

    # Notifications

    @abstractmethod
    async def notify(self, message: str, duration: int, color: str, *, log: Logger) -> None:
        """Send a notification.

        Args:
            message: The notification message
            duration: Duration in milliseconds
            color: Hex color code
            log: Logger to use for this operation
        """

    async def notify_info(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS, *, log: Logger) -> None:
        """Send an info notification (default: blue color)."""
        await self.notify(message, duration, "0000ff", log=log)

    async def notify_error(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS, *, log: Logger) -> None:
        """Send an error notification (default: red color)."""
        await self.notify(message, duration, "ff0000", log=log)
