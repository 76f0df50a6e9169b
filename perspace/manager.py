"""The perspace daemon: configuration, plugins, events and the control socket."""

import asyncio
import contextlib
import importlib
import inspect
import os
import signal
import sys
import tomllib
from typing import Any

import aiofiles
import aiofiles.os

from .adapters.backend import WindowingBackend
from .adapters.proxy import BackendProxy
from .adapters.xorg import XorgBackend
from .ansi import HandlerStyles, colorize
from .common import get_logger, merge
from .config import Configuration
from .constants import CONFIG_FILE, CONTROL, ERROR_NOTIFICATION_DURATION_MS, TASK_TIMEOUT
from .models import PerspaceError, ResponsePrefix
from .plugins.interface import Plugin
from .plugins.perspace import PERSPACE_CONFIG_SCHEMA

__all__: list[str] = ["Perspace"]

CORE_PLUGIN = "perspace"

Outcome = tuple[bool, str]
Job = tuple[str, tuple[str, ...], asyncio.Future[Outcome]]


def expand_path(path: str) -> str:
    """Expand `~` and environment variables in `path`."""
    return os.path.expanduser(os.path.expandvars(path))


class Perspace:
    """The daemon.

    The built-in `perspace` plugin answers the daemon commands directly. Every
    other plugin owns a job queue, drained by its own runner task, so its
    handlers never overlap and run in the order the events arrived.
    """

    server: asyncio.Server
    event_reader: asyncio.StreamReader | None = None
    stopped = False
    backend: BackendProxy

    def __init__(self, config_file: str = "") -> None:
        self.config_file = config_file
        self.config: dict[str, Any] = {}
        self.plugins: dict[str, Plugin] = {}
        self.queues: dict[str, asyncio.Queue[Job | None]] = {}
        self.runners: dict[str, asyncio.Task] = {}
        self.colored_logs = False
        self.log = get_logger()
        self.desktop: WindowingBackend | None = None
        self._last_workspace: tuple[str, ...] | None = None
        signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))

    def attach(self, desktop: WindowingBackend) -> None:
        """Drive `desktop` from now on."""
        self.desktop = desktop
        self.backend = BackendProxy(desktop, self.log)

    async def initialize(self) -> None:
        """Connect to the desktop and load the configuration."""
        if not await XorgBackend.is_available():
            self.log.critical("No supported environment detected. Requires an EWMH window manager and wmctrl.")
            raise PerspaceError
        self.attach(XorgBackend())
        try:
            await self.load_config()
        except KeyError as e:
            text = f"Failed to load config, missing {e} section"
            self.log.critical(text)
            await self.backend.notify_error(text, duration=ERROR_NOTIFICATION_DURATION_MS)
            raise PerspaceError from e

    # Configuration

    async def _read_toml(self, path: str) -> dict[str, Any]:
        if not await aiofiles.os.path.exists(path):
            self.log.critical("Config file not found! Please create %s", path)
            raise PerspaceError
        self.log.info("Loading %s", path)
        async with aiofiles.open(path, encoding="utf-8") as f:
            text = await f.read()
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            self.log.critical("Problem reading %s: %s", path, e)
            raise PerspaceError from e

    async def _included_files(self, include: str) -> list[str]:
        """A file, or the `*.toml` files of a folder in name order."""
        path = expand_path(include)
        if not await aiofiles.os.path.isdir(path):
            return [path]
        names = sorted(await aiofiles.os.listdir(path))
        return [os.path.join(path, name) for name in names if name.endswith(".toml")]

    async def read_config(self) -> dict[str, Any]:
        """Read the main configuration file, with its `include`s merged in."""
        config = await self._read_toml(expand_path(self.config_file or str(CONFIG_FILE)))
        for include in list(config[CORE_PLUGIN].get("include", [])):
            for path in await self._included_files(include):
                merge(config, await self._read_toml(path))
        return config

    async def load_config(self) -> None:
        """(Re)load the configuration and bring the plugins in line with it.

        Plugins no longer listed are unloaded, new ones are loaded, then every
        plugin gets its section and `on_reload` is called.
        """
        self.config = await self.read_config()
        core = Configuration(self.config[CORE_PLUGIN], logger=self.log, schema=PERSPACE_CONFIG_SCHEMA)
        self.colored_logs = core.get_bool("colored_handlers_log")

        wanted = [CORE_PLUGIN, *core.get_list("plugins")]
        for name in [name for name in self.plugins if name not in wanted]:
            await self._unload_plugin(name)
        for name in wanted:
            if name in self.plugins or await self._load_plugin(name):
                await self._configure_plugin(self.plugins[name])

    # Plugins

    async def _load_plugin(self, name: str) -> bool:
        """Import and initialize `name`. False if there's no such plugin."""
        assert self.desktop is not None, "no desktop attached"
        try:
            module = importlib.import_module(f"perspace.plugins.{name}")
        except ModuleNotFoundError as e:
            self.log.exception("Unable to locate plugin called '%s'", name)
            await self.backend.notify_info(f'Config requires plugin "{name}" but perspace can\'t find it: {e}')
            return False

        plugin: Plugin = module.Extension(name)
        plugin.backend = BackendProxy(self.desktop, plugin.log)
        if name == CORE_PLUGIN:
            plugin.manager = self  # type: ignore[attr-defined]
        try:
            await plugin.init()
        except Exception as e:
            self.log.exception("Error loading plugin %s:", name)
            await self.backend.notify_error(f"Error loading plugin {name}: {e}")
            raise PerspaceError from e

        self.plugins[name] = plugin
        if name != CORE_PLUGIN:
            self.queues[name] = asyncio.Queue()
            self.runners[name] = asyncio.create_task(self._drain_queue(plugin))
        return True

    async def _configure_plugin(self, plugin: Plugin) -> None:
        await plugin.load_config(self.config)
        errors = plugin.validate_config()
        for error in errors:
            self.log.error(error)
        if errors:
            await self.backend.notify_error(f"Plugin '{plugin.name}' has {len(errors)} config error(s). Check logs for details.")
        try:
            await asyncio.wait_for(plugin.on_reload(), timeout=TASK_TIMEOUT / 2)
        except TimeoutError:
            plugin.log.warning("timed out on reload")
        except Exception as e:
            self.log.exception("Error configuring plugin %s:", plugin.name)
            await self.backend.notify_error(f"Error configuring plugin {plugin.name}: {e}")
            raise PerspaceError from e
        else:
            plugin.log.info("configured")

    async def _unload_plugin(self, name: str) -> None:
        self.log.info("Unloading plugin %s", name)
        await self.plugins.pop(name).exit()
        queue = self.queues.pop(name, None)
        runner = self.runners.pop(name, None)
        if queue is not None and runner is not None:
            await queue.put(None)
            await asyncio.wait([runner])

    # Handlers

    def _trace(self, plugin: Plugin, handler: str, params: tuple[str, ...]) -> None:
        text = f"{handler}{params}"
        if self.colored_logs:
            text = colorize(text, *(HandlerStyles.COMMAND if handler.startswith("run_") else HandlerStyles.EVENT))
        plugin.log.debug(text)

    async def call(self, plugin: Plugin, handler: str, params: tuple[str, ...]) -> Outcome:
        """Run `plugin.<handler>(*params)`.

        Returns:
            (True, returned text) or (False, error message). With
            `PERSPACE_STRICT_ERRORS` set, errors are raised instead.
        """
        self._trace(plugin, handler, params)
        try:
            result = getattr(plugin, handler)(*params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.log.exception("%s::%s%s failed:", plugin.name, handler, params)
            message = f"{plugin.name}::{handler}: {e}"
            await self.backend.notify_error(f"Perspace error {message}")
            if os.environ.get("PERSPACE_STRICT_ERRORS"):
                raise
            return False, message
        return True, result if isinstance(result, str) else ""

    async def _drain_queue(self, plugin: Plugin) -> None:
        """Run the jobs queued for `plugin`, one at a time, until a `None`."""
        queue = self.queues[plugin.name]
        while (job := await queue.get()) is not None:
            handler, params, outcome = job
            try:
                result = await asyncio.wait_for(self.call(plugin, handler, params), timeout=TASK_TIMEOUT)
            except TimeoutError:
                self.log.error("%s::%s timed out", plugin.name, handler)
                result = (False, f"{plugin.name}::{handler}: timed out")
            except Exception as e:
                outcome.set_exception(e)
                raise
            outcome.set_result(result)

    async def dispatch(self, handler: str, *params: str, wait: bool = False) -> tuple[bool, bool, str]:
        """Send `handler(*params)` to every plugin implementing it.

        Core handlers run at once, the others go to the plugin queues. Queued
        calls are only awaited when `wait` is set (commands), events are fire
        and forget.

        Returns:
            (handled, success, text): `text` is the first error, or the
            concatenated outputs.
        """
        handled = False
        outputs: list[str] = []
        errors: list[str] = []
        pending: list[asyncio.Future[Outcome]] = []
        for plugin in list(self.plugins.values()):
            if not hasattr(plugin, handler):
                continue
            handled = True
            if plugin.name == CORE_PLUGIN:
                ok, text = await self.call(plugin, handler, params)
                (outputs if ok else errors).append(text)
                continue
            outcome: asyncio.Future[Outcome] = asyncio.get_running_loop().create_future()
            await self.queues[plugin.name].put((handler, params, outcome))
            pending.append(outcome)
        if wait:
            for ok, text in await asyncio.gather(*pending):
                (outputs if ok else errors).append(text)
        return handled, not errors, errors[0] if errors else "".join(outputs)

    # Events & commands

    async def read_events_loop(self) -> None:
        """Dispatch the desktop events until the stream ends."""
        if self.event_reader is None:
            return
        while not self.stopped:
            line = await self.event_reader.readline()
            if not line:
                if not self.stopped:
                    self.log.critical("Reader starved")
                return
            event = self.backend.parse_event(line.decode(errors="replace"))
            if event is None:
                continue
            name, *params = event
            if name == "event_workspace":
                # xprop -spy may print an unchanged desktop
                if tuple(params) == self._last_workspace:
                    continue
                self._last_workspace = tuple(params)
            await self.dispatch(name, *params)

    async def execute(self, line: str) -> str:
        """Run the command `line` and build the socket response."""
        command, *args = line.split()
        command = command.replace("-", "_")
        handled, success, text = await self.dispatch(f"run_{command}", *args, wait=True)
        if not handled:
            text = f'Unknown command "{command}". Try "help" for available commands.'
            self.log.warning(text)
            await self.backend.notify_info(text)
        if handled and success:
            return f"{ResponsePrefix.OK}\n{text}"
        return f"{ResponsePrefix.ERROR}: {text}\n"

    async def read_command(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Answer one client connection."""
        line = (await reader.readline()).decode().strip()
        if line:
            response = await self.execute(line)
        else:
            self.log.warning("Empty command received")
            response = f"{ResponsePrefix.ERROR}: No command provided\n"
        writer.write(response.encode())
        with contextlib.suppress(BrokenPipeError, ConnectionResetError):
            await writer.drain()
        writer.close()
        if self.stopped:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Unload every plugin, stop the event watchers and the server."""
        for name in reversed(list(self.plugins)):
            await self._unload_plugin(name)
        await self.backend.close()
        self.server.close()
        if os.path.exists(CONTROL):
            os.unlink(CONTROL)

    async def run(self) -> None:
        """Serve the clients and dispatch the events until shut down."""

        async def serve() -> None:
            async with self.server:
                with contextlib.suppress(asyncio.CancelledError):
                    await self.server.wait_closed()

        await asyncio.gather(serve(), self.read_events_loop())
