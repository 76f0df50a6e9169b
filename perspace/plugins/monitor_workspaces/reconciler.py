"""Window to workspace reassignment.

The desktop only knows one active workspace for all the monitors. To give
each monitor its own workspaces, the windows are moved instead:

- a directed switch moves the windows of the focused monitor one workspace
  up or down, leaving the active workspace alone,
- when the desktop switches the active workspace by itself (clicking a window
  of another workspace, for instance), every monitor but the focused one gets
  its windows shifted by the same amount, so that they keep showing the same
  content.
"""

from logging import Logger
from typing import TYPE_CHECKING

from ...models import Direction, InvalidStateError
from .gate import ConfigurationGate
from .views import WindowView, snapshot_windows

if TYPE_CHECKING:
    from ...adapters.proxy import BackendProxy


def shift_between(last: int, new: int) -> int:
    """Signed distance between two workspace indexes, without wrapping around."""
    direction = Direction.DOWN if new > last else Direction.UP
    return direction * abs(new - last)


class WorkspaceReconciler:
    """Moves windows so that every monitor looks like it has its own workspaces.

    Attributes:
        workspace_count: number of workspaces, read again by every operation
        last_active_workspace_index: active workspace as of the last resync
        focused_monitor_hint: monitor of the last window activated with focus,
            consumed by the next resync
    """

    def __init__(
        self,
        backend: "BackendProxy",
        gate: ConfigurationGate,
        log: Logger,
        active_workspace_index: int,
    ) -> None:
        self.backend = backend
        self.gate = gate
        self.log = log
        self.workspace_count = 0
        self.last_active_workspace_index = active_workspace_index
        self.focused_monitor_hint: int | None = None

    def reset_active_workspace(self, index: int) -> None:
        """Anchor the next resync shift on `index`."""
        self.last_active_workspace_index = index

    async def _refresh_workspace_count(self) -> int:
        count = await self.backend.workspace_count()
        if count < 1:
            msg = f"Invalid workspace count: {count}"
            raise InvalidStateError(msg)
        self.workspace_count = count
        self.log.debug("workspace_count = %d", count)
        return count

    async def _move_all(self, windows: list[WindowView], shift: int) -> None:
        """Move every window by `shift` workspaces."""
        count = self.workspace_count
        for window in windows:
            current = await window.live_workspace_index()
            target = (count + current + shift) % count
            if target == current:
                continue
            self.log.debug("%s: workspace %d -> %d", window.address, current, target)
            await window.move_to_workspace(target)

    async def _normal_windows(self) -> list[WindowView]:
        windows = await snapshot_windows(self.backend)
        self.log.debug("got %d windows", len(windows))
        return [win for win in windows if win.is_normal()]

    async def directed_switch(self, direction: Direction) -> None:
        """Switch the workspace of the focused monitor only.

        Raises:
            InvalidStateError: the desktop reports no workspace
        """
        await self._refresh_workspace_count()
        windows = await self._normal_windows()
        focused = await self.backend.focused_monitor_index()
        windows = [win for win in windows if win.initial_monitor_index == focused]
        self.log.debug("switching %d windows of monitor %d by %d", len(windows), focused, direction)
        await self._move_all(windows, int(direction))

    async def resync(self) -> None:
        """Undo, on the monitors not in use, a switch forced by the desktop.

        Must only be called when the active workspace changed.

        Raises:
            InvalidStateError: the desktop reports no workspace or no active workspace
        """
        if not self.gate.automatic_switching_allowed():
            self.log.debug("not resynchronizing: automatic switching is disabled")
            return

        await self._refresh_workspace_count()
        new_active = await self.backend.active_workspace_index()
        if new_active < 0:
            msg = f"Invalid active workspace: {new_active}"
            raise InvalidStateError(msg)

        shift = shift_between(self.last_active_workspace_index, new_active)

        if self.focused_monitor_hint is not None:
            focused = self.focused_monitor_hint
        else:
            focused = await self.backend.focused_monitor_index()
        self.focused_monitor_hint = None

        self.log.debug("workspace %d -> %d, shift: %d, focused monitor: %d", self.last_active_workspace_index, new_active, shift, focused)

        windows = await self._normal_windows()
        await self._move_all([win for win in windows if win.initial_monitor_index != focused], shift)
        self.last_active_workspace_index = new_active


class FocusTracker:
    """Remembers on which monitor a window was just activated.

    By the time the workspace change notification arrives, the focused
    monitor already reflects the new state: the monitor recorded here is
    used instead by the next resync.
    """

    def __init__(self, reconciler: WorkspaceReconciler) -> None:
        self.reconciler = reconciler

    async def window_activated_with_focus(self, window: WindowView) -> None:
        """Record the monitor of `window`, whatever its kind."""
        monitor = await window.live_monitor_index()
        self.reconciler.log.debug("next active monitor will be %d", monitor)
        self.reconciler.focused_monitor_hint = monitor
