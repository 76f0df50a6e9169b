"""Decides whether other monitors get resynchronized automatically."""

from logging import Logger
from typing import TYPE_CHECKING

from ...config import Configuration

if TYPE_CHECKING:
    from ...adapters.proxy import BackendProxy


class ConfigurationGate:
    """Environment checks for the automatic resynchronization.

    Docks which manage windows from every workspace and dynamic workspaces
    both fight against the window moves. Both conditions are tracked, but they
    only forbid the resync when `strict_compatibility` is set: the switching
    is otherwise always allowed.
    """

    def __init__(self, backend: "BackendProxy", config: Configuration, log: Logger) -> None:
        self.backend = backend
        self.config = config
        self.log = log
        self.conflicting_extension_active = False
        self.dynamic_workspaces_enabled = False

    async def refresh(self) -> None:
        """Query the desktop again, call whenever the environment may have changed."""
        incompatible = set(self.config.get_list("incompatible_extensions"))
        enabled = await self.backend.enabled_extensions()
        self.conflicting_extension_active = any(uuid in incompatible for uuid in enabled)
        self.dynamic_workspaces_enabled = await self.backend.dynamic_workspaces_enabled()
        self.log.debug(self.describe())

    def automatic_switching_allowed(self) -> bool:
        """Return True if `resync` may move windows."""
        if not self.config.get_bool("strict_compatibility"):
            return True
        return (
            self.config.get_bool("automatic_switching")
            and not self.conflicting_extension_active
            and not self.dynamic_workspaces_enabled
        )

    def describe(self) -> str:
        """Human readable state."""
        return (
            f"conflicting_extension_active: {self.conflicting_extension_active}\n"
            f"dynamic_workspaces_enabled: {self.dynamic_workspaces_enabled}\n"
            f"automatic_switching: {self.config.get_bool('automatic_switching')}\n"
            f"strict_compatibility: {self.config.get_bool('strict_compatibility')}\n"
            f"allowed: {self.automatic_switching_allowed()}"
        )
