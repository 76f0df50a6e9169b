"""Not a real Plugin - provides the daemon commands."""

from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING

from ..validation import ConfigField, ConfigItems
from .interface import Plugin

if TYPE_CHECKING:
    from ..manager import Perspace

PERSPACE_CONFIG_SCHEMA = ConfigItems(
    ConfigField("plugins", list, required=True, description="Plugins to load"),
    ConfigField("include", list, description="Extra configuration files or folders"),
    ConfigField("colored_handlers_log", bool, default=True, description="Color the handler calls in the logs"),
)


class Extension(Plugin):
    """Internal built-in plugin implementing the daemon commands."""

    config_schema = PERSPACE_CONFIG_SCHEMA

    manager: "Perspace"

    async def run_reload(self) -> None:
        """Reload the configuration file, loading or unloading plugins."""
        await self.manager.load_config()

    async def run_exit(self) -> None:
        """Terminate the daemon."""
        self.manager.stopped = True

    def run_version(self) -> str:
        """Show the version."""
        try:
            return f"{version('perspace')}\n"
        except PackageNotFoundError:
            return "unknown\n"

    def run_help(self) -> str:
        """Show the available commands."""
        lines = []
        for plugin in self.manager.plugins.values():
            for name in sorted(dir(plugin)):
                if not name.startswith("run_"):
                    continue
                doc = (getattr(plugin, name).__doc__ or "").strip().splitlines()
                lines.append(f"{name[4:]:15} {doc[0] if doc else ''}")
        return "\n".join(lines) + "\n"
