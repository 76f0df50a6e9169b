"""Backend proxy that injects a plugin logger into all calls.

Each plugin gets its own BackendProxy instance with its own logger, while
sharing the underlying backend, so that every backend operation shows up
under the name of the plugin which triggered it.
"""

import asyncio
from logging import Logger
from typing import TYPE_CHECKING, Any

from ..constants import DEFAULT_NOTIFICATION_DURATION_MS
from ..models import MonitorInfo, WindowInfo

if TYPE_CHECKING:
    from .backend import WindowingBackend


class BackendProxy:
    """Proxy that injects the plugin logger into all backend calls.

    Attributes:
        log: The logger to use for all backend operations
    """

    def __init__(self, backend: "WindowingBackend", log: Logger) -> None:
        self._backend = backend
        self.log = log

    # === Query methods ===

    async def get_windows(self) -> list[WindowInfo]:
        """Return the top-level windows."""
        return await self._backend.get_windows(log=self.log)

    async def get_window(self, address: str) -> WindowInfo | None:
        """Return the window with the given address, None if it's gone."""
        return await self._backend.get_window(address, log=self.log)

    async def get_window_workspace(self, address: str) -> int | None:
        """Return the workspace index of a window, None if it's gone."""
        return await self._backend.get_window_workspace(address, log=self.log)

    async def get_monitors(self) -> list[MonitorInfo]:
        """Return the active monitors."""
        return await self._backend.get_monitors(log=self.log)

    async def workspace_count(self) -> int:
        """Return the number of workspaces."""
        return await self._backend.workspace_count(log=self.log)

    async def active_workspace_index(self) -> int:
        """Return the index of the active workspace."""
        return await self._backend.active_workspace_index(log=self.log)

    async def focused_monitor_index(self) -> int:
        """Return the index of the focused monitor."""
        return await self._backend.focused_monitor_index(log=self.log)

    async def enabled_extensions(self) -> list[str]:
        """Return the enabled desktop extensions."""
        return await self._backend.enabled_extensions(log=self.log)

    async def dynamic_workspaces_enabled(self) -> bool:
        """Return the dynamic workspaces preference."""
        return await self._backend.dynamic_workspaces_enabled(log=self.log)

    # === Action methods ===

    async def move_window_to_workspace(self, address: str, index: int) -> bool:
        """Move a window to a workspace."""
        return await self._backend.move_window_to_workspace(address, index, log=self.log)

    async def activate_window(self, address: str) -> bool:
        """Focus a window, switching to its workspace if needed."""
        return await self._backend.activate_window(address, log=self.log)

    # === Event methods ===

    async def get_event_stream(self) -> asyncio.StreamReader:
        """Return the raw event stream."""
        return await self._backend.get_event_stream(log=self.log)

    def parse_event(self, raw_data: str) -> tuple[str, Any] | None:
        """Parse a raw event line."""
        return self._backend.parse_event(raw_data, log=self.log)

    async def close(self) -> None:
        """Release the event stream resources."""
        await self._backend.close(log=self.log)

    # === Notification methods ===

    async def notify(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS, color: str = "ff0000") -> None:
        """Send a notification."""
        await self._backend.notify(message, duration, color, log=self.log)

    async def notify_info(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS) -> None:
        """Send an info notification."""
        await self._backend.notify_info(message, duration, log=self.log)

    async def notify_error(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS) -> None:
        """Send an error notification."""
        await self._backend.notify_error(message, duration, log=self.log)
