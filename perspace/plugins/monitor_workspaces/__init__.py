"""Per-monitor workspaces on top of the desktop's global workspaces."""

import functools
from collections.abc import Awaitable, Callable
from typing import Any

from ...models import Direction, InvalidStateError
from ..interface import Plugin
from .gate import ConfigurationGate
from .reconciler import FocusTracker, WorkspaceReconciler
from .schema import MONITOR_WORKSPACES_SCHEMA
from .views import WindowView, snapshot_windows

__all__ = ["Extension"]

SWITCH_DIRECTIONS = {"+1": Direction.DOWN, "1": Direction.DOWN, "-1": Direction.UP}


def skip_on_invalid_state(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Log `InvalidStateError` and turn the handler into a no-op."""

    @functools.wraps(func)
    async def _wrapper(self: "Extension", *args: Any) -> Any:  # noqa: ANN401
        try:
            return await func(self, *args)
        except InvalidStateError as e:
            self.log.error("%s skipped: %s", func.__name__, e)  # noqa: TRY400
            return None

    return _wrapper


class Extension(Plugin):
    """Switch workspaces on the focused monitor only.

    This object is the context of the feature: it owns the gate, the
    reconciler and the focus tracker from `init` (enable) to `exit` (disable).
    """

    config_schema = MONITOR_WORKSPACES_SCHEMA

    gate: ConfigurationGate | None = None
    reconciler: WorkspaceReconciler | None = None
    focus_tracker: FocusTracker | None = None

    async def init(self) -> None:
        """Build the context."""
        self.gate = ConfigurationGate(self.backend, self.config, self.log)
        self.reconciler = WorkspaceReconciler(
            self.backend,
            self.gate,
            self.log,
            active_workspace_index=await self.backend.active_workspace_index(),
        )
        self.focus_tracker = FocusTracker(self.reconciler)

    async def on_reload(self) -> None:
        """Apply the configuration and read the environment again."""
        assert self.gate and self.reconciler
        self.reconciler.reset_active_workspace(await self.backend.active_workspace_index())
        await self.gate.refresh()

    async def exit(self) -> None:
        """Drop the context."""
        self.focus_tracker = None
        self.reconciler = None
        self.gate = None

    # Commands

    @skip_on_invalid_state
    async def run_up(self) -> None:
        """Switch the focused monitor to the previous workspace."""
        assert self.reconciler
        await self.reconciler.directed_switch(Direction.UP)

    @skip_on_invalid_state
    async def run_down(self) -> None:
        """Switch the focused monitor to the next workspace."""
        assert self.reconciler
        await self.reconciler.directed_switch(Direction.DOWN)

    @skip_on_invalid_state
    async def run_switch(self, direction: str) -> None:
        """<+1/-1> Switch the focused monitor's workspace in the given direction."""
        assert self.reconciler
        if direction not in SWITCH_DIRECTIONS:
            msg = f"direction must be +1 or -1, got {direction!r}"
            raise ValueError(msg)
        await self.reconciler.directed_switch(SWITCH_DIRECTIONS[direction])

    async def run_activate(self, address: str) -> None:
        """<address> Focus a window, other monitors keep their workspace."""
        await self.event_activatewindow(address)
        if not await self.backend.activate_window(address):
            msg = f"can't activate {address}"
            raise RuntimeError(msg)

    def run_status(self) -> str:
        """Show the state of the workspace tracking."""
        assert self.gate and self.reconciler
        hint = self.reconciler.focused_monitor_hint
        return (
            f"workspace_count: {self.reconciler.workspace_count}\n"
            f"last_active_workspace: {self.reconciler.last_active_workspace_index}\n"
            f"focused_monitor_hint: {'none' if hint is None else hint}\n"
            f"{self.gate.describe()}\n"
        )

    async def run_windows(self) -> str:
        """List the windows as seen by the workspace switching."""
        return "".join(f"{view}\n" for view in await snapshot_windows(self.backend))

    # Events

    @skip_on_invalid_state
    async def event_workspace(self, _index: str) -> None:
        """The desktop switched the active workspace."""
        assert self.reconciler
        await self.reconciler.resync()

    async def event_activatewindow(self, address: str) -> None:
        """A window is about to be activated with focus."""
        assert self.focus_tracker
        info = await self.backend.get_window(address)
        if info is None:
            self.log.warning("Unknown window %s", address)
            return
        await self.focus_tracker.window_activated_with_focus(WindowView(info, self.backend))

    async def event_extensions(self, _extensions: str) -> None:
        """The set of enabled extensions changed."""
        assert self.gate
        await self.gate.refresh()

    async def event_dynamicworkspaces(self, _value: str) -> None:
        """The dynamic workspaces preference changed."""
        assert self.gate
        await self.gate.refresh()
