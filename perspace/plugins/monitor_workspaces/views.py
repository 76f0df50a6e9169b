"""Window snapshots used while reassigning windows to workspaces."""

from typing import TYPE_CHECKING

from ...models import WindowInfo, WindowKind

if TYPE_CHECKING:
    from ...adapters.proxy import BackendProxy


class WindowView:
    """Snapshot of a window, taken at the start of an operation.

    The initial monitor and workspace are frozen at construction and used to
    decide which windows an operation applies to. The live values are read
    again from the backend each time they are requested: to observe a moved
    window as a whole, build a new view.
    """

    __slots__ = ("_backend", "_initial_monitor_index", "_initial_workspace_index", "address", "kind", "title")

    def __init__(self, info: WindowInfo, backend: "BackendProxy") -> None:
        self._backend = backend
        self.address = info["address"]
        self.title = info["title"]
        self.kind = info["kind"]
        self._initial_monitor_index = info["monitor"]
        self._initial_workspace_index = info["workspace"]

    @property
    def initial_monitor_index(self) -> int:
        """Monitor the window was on when the view was built."""
        return self._initial_monitor_index

    @property
    def initial_workspace_index(self) -> int:
        """Workspace the window was on when the view was built."""
        return self._initial_workspace_index

    def is_normal(self) -> bool:
        """Only normal windows follow the workspace switches."""
        return self.kind == WindowKind.NORMAL

    async def live_workspace_index(self) -> int:
        """Current workspace of the window (the initial one if it's gone)."""
        index = await self._backend.get_window_workspace(self.address)
        return self._initial_workspace_index if index is None else index

    async def live_monitor_index(self) -> int:
        """Current monitor of the window (the initial one if it's gone)."""
        info = await self._backend.get_window(self.address)
        if info is None:
            return self._initial_monitor_index
        return info["monitor"]

    async def move_to_workspace(self, index: int) -> None:
        """Ask the desktop to move the window, the desktop has the last word."""
        if not await self._backend.move_window_to_workspace(self.address, index):
            self._backend.log.warning("Failed to move %s to workspace %d", self.address, index)

    def __str__(self) -> str:
        return (
            f"{self.address} kind={self.kind} monitor={self._initial_monitor_index} "
            f"workspace={self._initial_workspace_index} normal={self.is_normal()} title={self.title!r}"
        )


async def snapshot_windows(backend: "BackendProxy") -> list[WindowView]:
    """Return a view of every window."""
    return [WindowView(info, backend) for info in await backend.get_windows()]
