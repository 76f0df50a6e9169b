import asyncio
import sys
from unittest.mock import AsyncMock

import pytest
from pytest_asyncio import fixture

from perspace.adapters.xorg import XorgBackend
from perspace.manager import Perspace
from perspace.models import PerspaceError

from .testtools import FakeDesktop, MockReader, MockWriter

CONFIG = """
[perspace]
plugins = ["monitor_workspaces"]

[monitor_workspaces]
strict_compatibility = false
"""


def write_config(path, text=CONFIG):
    path.write_text(text)
    return str(path)


def make_manager(config_file, desktop):
    manager = Perspace(config_file)
    manager.attach(desktop)
    return manager


@fixture
async def manager(tmp_path):
    "A manager running the monitor_workspaces plugin on a fake desktop"
    desktop = FakeDesktop(active=1)
    desktop.add("0xa", monitor=0, workspace=1)
    desktop.add("0xb", monitor=1, workspace=1)
    app = make_manager(write_config(tmp_path / "config.toml"), desktop)
    await app.load_config()
    yield app
    for name in list(app.runners):
        await app._unload_plugin(name)


async def drain(app):
    "Let the plugin runner process the queued events"
    while not app.queues["monitor_workspaces"].empty():
        await asyncio.sleep(0.01)
    await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_load_config(manager):
    assert list(manager.plugins) == ["perspace", "monitor_workspaces"]
    assert list(manager.runners) == ["monitor_workspaces"]
    assert manager.config["perspace"]["plugins"] == ["monitor_workspaces"]
    assert manager.plugins["monitor_workspaces"].config.get_bool("automatic_switching") is True
    assert manager.colored_logs is True


@pytest.mark.asyncio
async def test_config_include(tmp_path):
    extra = tmp_path / "extra.d"
    extra.mkdir()
    write_config(extra / "plain.toml", "[perspace]\ncolored_handlers_log = false\n")
    write_config(extra / "ignored.txt", "not toml at all")
    config = write_config(tmp_path / "config.toml", f'[perspace]\nplugins = []\ninclude = ["{extra}"]\n')
    app = make_manager(config, FakeDesktop())

    await app.load_config()

    assert app.config["perspace"]["colored_handlers_log"] is False
    assert app.colored_logs is False


@pytest.mark.asyncio
async def test_missing_config(tmp_path):
    app = make_manager(str(tmp_path / "nope.toml"), FakeDesktop())
    with pytest.raises(PerspaceError):
        await app.load_config()


@pytest.mark.asyncio
async def test_invalid_toml(tmp_path):
    app = make_manager(write_config(tmp_path / "config.toml", "[perspace\n"), FakeDesktop())
    with pytest.raises(PerspaceError):
        await app.load_config()


@pytest.mark.asyncio
async def test_config_errors_are_notified(tmp_path):
    desktop = FakeDesktop()
    text = '[perspace]\nplugins = ["monitor_workspaces"]\n[monitor_workspaces]\nautomatic_switching = 3\n'
    app = make_manager(write_config(tmp_path / "config.toml", text), desktop)

    await app.load_config()
    await app._unload_plugin("monitor_workspaces")

    assert any("1 config error" in msg for msg in desktop.notifications)


@pytest.mark.asyncio
async def test_unknown_plugin(tmp_path):
    desktop = FakeDesktop()
    app = make_manager(write_config(tmp_path / "config.toml", '[perspace]\nplugins = ["no_such_plugin"]\n'), desktop)

    await app.load_config()

    assert "no_such_plugin" not in app.plugins
    assert any("no_such_plugin" in msg for msg in desktop.notifications)


@pytest.mark.asyncio
async def test_plugins_only_come_from_the_package(tmp_path):
    folder = tmp_path / "plugins"
    folder.mkdir()
    (folder / "outsider.py").write_text("class Extension:\n    pass\n")
    desktop = FakeDesktop()
    text = f'[perspace]\nplugins = ["outsider"]\nplugins_paths = ["{folder}"]\n'
    app = make_manager(write_config(tmp_path / "config.toml", text), desktop)

    await app.load_config()

    assert str(folder) not in sys.path
    assert list(app.plugins) == ["perspace"]
    assert any("outsider" in msg for msg in desktop.notifications)


@pytest.mark.asyncio
async def test_reload_unloads_plugins(manager, tmp_path):
    write_config(tmp_path / "config.toml", "[perspace]\nplugins = []\n")
    assert await manager.execute("reload") == "OK\n"
    assert list(manager.plugins) == ["perspace"]
    assert manager.runners == {}
    assert manager.queues == {}


@pytest.mark.asyncio
async def test_builtin_commands(manager):
    assert (await manager.execute("version")).startswith("OK\n")
    help_text = await manager.execute("help")
    assert "up " in help_text
    assert "reload " in help_text


@pytest.mark.asyncio
async def test_plugin_command(manager):
    desktop = manager.desktop
    assert await manager.execute("down") == "OK\n"
    assert desktop.workspace_of("0xa") == 2
    assert desktop.workspace_of("0xb") == 1

    status = await manager.execute("status")
    assert status.startswith("OK\nworkspace_count: 4\n")


@pytest.mark.asyncio
async def test_unknown_command(manager):
    response = await manager.execute("dance")
    assert response == 'ERROR: Unknown command "dance". Try "help" for available commands.\n'
    assert manager.desktop.notifications == ['Unknown command "dance". Try "help" for available commands.']


@pytest.mark.asyncio
async def test_failing_command(manager):
    response = await manager.execute("switch 5")
    assert response.startswith("ERROR: monitor_workspaces::run_switch: direction must be +1 or -1")
    assert manager.desktop.notifications

    response = await manager.execute("activate")
    assert response.startswith("ERROR: monitor_workspaces::run_activate:")


@pytest.mark.asyncio
async def test_handler_errors(manager, mocker):
    plugin = manager.plugins["monitor_workspaces"]
    mocker.patch.object(plugin, "run_up", AsyncMock(side_effect=AssertionError("no reconciler")))

    assert await manager.call(plugin, "run_up", ()) == (False, "monitor_workspaces::run_up: no reconciler")
    assert manager.desktop.notifications == ["Perspace error monitor_workspaces::run_up: no reconciler"]


@pytest.mark.asyncio
async def test_strict_errors(manager, monkeypatch):
    monkeypatch.setenv("PERSPACE_STRICT_ERRORS", "1")
    plugin = manager.plugins["monitor_workspaces"]
    with pytest.raises(ValueError, match="direction must be"):
        await manager.call(plugin, "run_switch", ("three",))


@pytest.mark.asyncio
async def test_events(manager):
    desktop = manager.desktop
    reader = MockReader()
    manager.event_reader = reader
    handler = AsyncMock()
    manager.plugins["monitor_workspaces"].event_dynamicworkspaces = handler

    desktop.active = 2
    await reader.q.put(b"workspace>>2\n")
    await reader.q.put(b"garbage\n")
    await reader.q.put(b"dynamicworkspaces>>true\n")
    await reader.q.put(b"")
    await manager.read_events_loop()
    await drain(manager)

    assert desktop.workspace_of("0xb") == 2
    assert desktop.workspace_of("0xa") == 1
    handler.assert_awaited_once_with("true")


@pytest.mark.asyncio
async def test_repeated_workspace_event_is_dropped(manager):
    reader = MockReader()
    manager.event_reader = reader
    handler = AsyncMock()
    manager.plugins["monitor_workspaces"].event_workspace = handler

    for line in (b"workspace>>2\n", b"workspace>>2\n", b"workspace>>3\n", b"workspace>>2\n", b""):
        await reader.q.put(line)
    await manager.read_events_loop()
    await drain(manager)

    assert [call.args for call in handler.await_args_list] == [("2",), ("3",), ("2",)]


@pytest.mark.asyncio
async def test_read_command(manager):
    reader, writer = MockReader(), MockWriter()
    await reader.q.put(b"status\n")
    await manager.read_command(reader, writer)
    assert writer.write.call_args.args[0].startswith(b"OK\nworkspace_count")
    writer.close.assert_called_once()


@pytest.mark.asyncio
async def test_read_empty_command(manager):
    reader, writer = MockReader(), MockWriter()
    await reader.q.put(b"\n")
    await manager.read_command(reader, writer)
    writer.write.assert_called_once_with(b"ERROR: No command provided\n")


@pytest.mark.asyncio
async def test_exit_command(manager, mocker):
    shutdown = mocker.patch.object(manager, "shutdown", AsyncMock())
    reader, writer = MockReader(), MockWriter()
    await reader.q.put(b"exit\n")

    await manager.read_command(reader, writer)

    assert manager.stopped is True
    writer.write.assert_called_once_with(b"OK\n")
    writer.close.assert_called_once()
    shutdown.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_shutdown(manager, mocker, tmp_path):
    socket = tmp_path / "perspace.sock"
    socket.touch()
    mocker.patch("perspace.manager.CONTROL", str(socket))
    manager.server = mocker.Mock()
    plugin = manager.plugins["monitor_workspaces"]

    await manager.shutdown()

    assert plugin.reconciler is None
    assert manager.plugins == {}
    assert manager.runners == {}
    manager.server.close.assert_called_once()
    assert not socket.exists()


@pytest.mark.asyncio
async def test_no_backend(mocker):
    mocker.patch("perspace.manager.XorgBackend.is_available", AsyncMock(return_value=False))
    app = Perspace()
    with pytest.raises(PerspaceError):
        await app.initialize()


@pytest.mark.asyncio
async def test_initialize(tmp_path, mocker):
    mocker.patch("perspace.manager.XorgBackend.is_available", AsyncMock(return_value=True))
    app = Perspace(write_config(tmp_path / "config.toml", "[perspace]\nplugins = []\n"))

    await app.initialize()

    assert isinstance(app.desktop, XorgBackend)
    assert list(app.plugins) == ["perspace"]


@pytest.mark.asyncio
async def test_missing_core_section(tmp_path, mocker):
    mocker.patch("perspace.manager.XorgBackend.is_available", AsyncMock(return_value=True))
    notify = mocker.patch("perspace.manager.XorgBackend.notify", AsyncMock())
    app = Perspace(write_config(tmp_path / "config.toml", "[monitor_workspaces]\n"))

    with pytest.raises(PerspaceError):
        await app.initialize()

    assert "missing 'perspace' section" in notify.call_args.args[0]
