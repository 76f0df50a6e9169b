import pytest

from perspace.plugins.monitor_workspaces.gate import ConfigurationGate


@pytest.fixture
def gate(backend, workspaces_config, test_logger):
    return ConfigurationGate(backend, workspaces_config, test_logger)


@pytest.mark.asyncio
async def test_refresh_detects_conflicts(desktop, gate):
    desktop.extensions = ["appindicator@ubuntu.com", "ubuntu-dock@ubuntu.com"]
    desktop.dynamic_workspaces = True

    await gate.refresh()

    assert gate.conflicting_extension_active is True
    assert gate.dynamic_workspaces_enabled is True


@pytest.mark.asyncio
async def test_refresh_without_conflicts(desktop, gate):
    desktop.extensions = ["appindicator@ubuntu.com"]

    await gate.refresh()

    assert gate.conflicting_extension_active is False
    assert gate.dynamic_workspaces_enabled is False


@pytest.mark.asyncio
async def test_always_allowed_by_default(desktop, gate, workspaces_config):
    desktop.extensions = ["dash-to-dock@micxgx.gmail.com"]
    desktop.dynamic_workspaces = True
    workspaces_config["automatic_switching"] = False

    await gate.refresh()

    assert gate.automatic_switching_allowed() is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("extensions", "dynamic", "automatic", "allowed"),
    [
        ([], False, True, True),
        (["dash-to-dock@micxgx.gmail.com"], False, True, False),
        ([], True, True, False),
        ([], False, False, False),
    ],
)
async def test_strict_compatibility(desktop, gate, workspaces_config, extensions, dynamic, automatic, allowed):
    workspaces_config["strict_compatibility"] = True
    workspaces_config["automatic_switching"] = automatic
    desktop.extensions = extensions
    desktop.dynamic_workspaces = dynamic

    await gate.refresh()

    assert gate.automatic_switching_allowed() is allowed


@pytest.mark.asyncio
async def test_custom_incompatible_extensions(desktop, gate, workspaces_config):
    workspaces_config["incompatible_extensions"] = "my-dock@example.org"
    desktop.extensions = ["my-dock@example.org"]

    await gate.refresh()

    assert gate.conflicting_extension_active is True


def test_describe(gate):
    text = gate.describe()
    assert "conflicting_extension_active: False" in text
    assert "strict_compatibility: False" in text
    assert "allowed: True" in text
