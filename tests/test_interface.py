from unittest.mock import Mock

import pytest

from perspace.config import Configuration
from perspace.plugins.interface import Plugin
from perspace.validation import ConfigField, ConfigItems


class ConcretePlugin(Plugin):
    """A concrete implementation of Plugin for testing."""

    config_schema = ConfigItems(ConfigField("option1", str, required=True), ConfigField("option2", int, default=7))


@pytest.fixture
def plugin():
    plugin = ConcretePlugin("test_plugin")
    plugin.backend = Mock()
    return plugin


@pytest.mark.asyncio
async def test_plugin_init(plugin):
    assert plugin.name == "test_plugin"
    assert isinstance(plugin.config, Configuration)
    # Ensure init methods exist and are callable (even if empty)
    await plugin.init()
    await plugin.on_reload()
    await plugin.exit()


@pytest.mark.asyncio
async def test_load_config(plugin):
    config = {"test_plugin": {"option1": "value1"}, "other_plugin": {"ignore": "me"}}

    await plugin.load_config(config)

    assert plugin.config["option1"] == "value1"
    assert plugin.config.get("option2") == 7
    assert "ignore" not in plugin.config

    await plugin.load_config({})
    assert "option1" not in plugin.config


@pytest.mark.asyncio
async def test_validate_config(plugin):
    await plugin.load_config({"test_plugin": {"option2": "many"}})
    errors = plugin.validate_config()
    assert errors == [
        "[test_plugin] Config error for 'option1': Missing required field",
        "[test_plugin] Config error for 'option2': Expected int, got str",
    ]


def test_no_schema():
    assert Plugin("bare").validate_config() == []
