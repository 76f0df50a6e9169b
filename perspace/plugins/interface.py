"""Common plugin interface."""

from typing import TYPE_CHECKING, Any, ClassVar

from ..common import get_logger
from ..config import Configuration
from ..validation import ConfigItems, ConfigValidator

if TYPE_CHECKING:
    from ..adapters.proxy import BackendProxy


class Plugin:
    """Base class for any perspace plugin.

    Handlers are discovered by name: `run_<command>` methods are exposed as
    client commands, `event_<name>` methods receive the desktop events.
    """

    config_schema: ClassVar[ConfigItems] = ConfigItems()
    """ Schema used for defaults and validation of this plugin's section """

    backend: "BackendProxy"
    """ The windowing backend, logging through this plugin's logger """

    def __init__(self, name: str) -> None:
        """Create a new plugin `name` and the matching logger."""
        self.name = name
        """ the plugin name """
        self.log = get_logger(name)
        """ the logger to use for this plugin """
        self.config = Configuration({}, logger=self.log, schema=self.config_schema)
        """ This plugin configuration section as a `Configuration` object """

    # Functions to override

    async def init(self) -> None:
        """Set up the plugin, called once when it's loaded.

        Note that the `config` attribute isn't ready yet when this is called.
        """

    async def on_reload(self) -> None:
        """Add the code which requires the `config` attribute here.

        This is called on *init* and *reload*
        """

    async def exit(self) -> None:
        """Release everything the plugin holds, called when unloaded."""

    # Generic implementations

    async def load_config(self, config: dict[str, Any]) -> None:
        """Load the configuration section from the passed `config`."""
        self.config.clear()
        self.config.update(config.get(self.name, {}))

    def validate_config(self) -> list[str]:
        """Validate the loaded section against `config_schema`.

        Returns:
            List of error messages (empty if the configuration is valid)
        """
        if not self.config_schema:
            return []
        validator = ConfigValidator(self.config, self.name, self.log)
        validator.warn_unknown_keys(self.config_schema)
        return validator.validate(self.config_schema)
