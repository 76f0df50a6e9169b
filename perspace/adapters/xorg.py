"""X11 backend for EWMH compliant window managers.

Windows are listed and moved with `wmctrl`, properties are read with `xprop`,
monitors come from `xrandr` and the pointer location from `xdotool`. GNOME
specific settings (extensions, dynamic workspaces) are read with
`gnome-extensions` and `gsettings` and simply report nothing elsewhere.
"""

import asyncio
import contextlib
import re
import shlex
from logging import Logger
from typing import Any

from ..common import run_command
from ..constants import DEFAULT_NOTIFICATION_DURATION_MS
from ..models import MonitorInfo, PerspaceError, WindowInfo, WindowKind
from .backend import WindowingBackend

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]+$")

XRANDR_RE = re.compile(
    r"^(\S+)\s+connected"  # name
    r"(?:\s+primary)?"  # optional primary
    r"\s+(\d+)x(\d+)\+(\d+)\+(\d+)"  # WxH+X+Y
)

CARDINAL_RE = re.compile(r"^\S+\(CARDINAL\) = (\d+)")

WINDOW_TYPE_PREFIX = "_NET_WM_WINDOW_TYPE_"

# commands whose output lines are merged into the event stream
EVENT_SOURCES = (
    "xprop -spy -root _NET_CURRENT_DESKTOP",
    "gsettings monitor org.gnome.shell enabled-extensions",
    "gsettings monitor org.gnome.mutter dynamic-workspaces",
)


def check_address(address: str) -> str:
    """Return `address` if it looks like an X11 window id, raise ValueError otherwise."""
    if not ADDRESS_RE.match(address):
        msg = f"Invalid window address: {address!r}"
        raise ValueError(msg)
    return address


def parse_cardinal(output: str) -> int | None:
    """Extract the value of a CARDINAL property printed by `xprop`."""
    match = CARDINAL_RE.match(output.strip())
    if match:
        return int(match.group(1))
    return None


def parse_window_kind(output: str) -> WindowKind:
    """Convert `xprop _NET_WM_WINDOW_TYPE` output to a WindowKind.

    Example output:
        _NET_WM_WINDOW_TYPE(ATOM) = _NET_WM_WINDOW_TYPE_DIALOG, _NET_WM_WINDOW_TYPE_NORMAL

    The first (preferred) type wins, windows without the property are normal.
    """
    if "=" not in output:
        return WindowKind.NORMAL
    first = output.split("=", 1)[1].split(",")[0].strip()
    if not first.startswith(WINDOW_TYPE_PREFIX):
        return WindowKind.OTHER
    try:
        return WindowKind(first[len(WINDOW_TYPE_PREFIX) :].lower())
    except ValueError:
        return WindowKind.OTHER


def parse_xrandr_output(output: str, log: Logger) -> list[MonitorInfo]:
    """Parse `xrandr --query` output to extract the active monitors.

    Example xrandr output:
        DP-1 connected primary 1920x1080+0+0 (normal left inverted right x axis y axis) 527mm x 296mm
           1920x1080     60.00*+
        HDMI-1 connected 2560x1440+1920+0 (normal left inverted right x axis y axis) 597mm x 336mm
           2560x1440     59.95*+
        VGA-1 disconnected (normal left inverted right x axis y axis)
    """
    monitors: list[MonitorInfo] = []
    for line in output.splitlines():
        match = XRANDR_RE.match(line)
        if not match:
            continue
        name = match.group(1)
        width, height, x, y = (int(match.group(i)) for i in range(2, 6))
        log.debug("xrandr monitor: %s %dx%d+%d+%d", name, width, height, x, y)
        monitors.append(MonitorInfo(id=len(monitors), name=name, x=x, y=y, width=width, height=height))
    return monitors


def shell_vars(output: str) -> dict[str, str]:
    """Parse the `KEY=value` lines printed by `xdotool --shell`."""
    return dict(line.split("=", 1) for line in output.splitlines() if "=" in line)


def monitor_at(x: int, y: int, monitors: list[MonitorInfo]) -> int:
    """Return the index of the monitor holding the point, or the nearest one."""
    if not monitors:
        return 0
    for mon in monitors:
        if mon["x"] <= x < mon["x"] + mon["width"] and mon["y"] <= y < mon["y"] + mon["height"]:
            return mon["id"]

    def distance(mon: MonitorInfo) -> int:
        dx = max(mon["x"] - x, 0, x - (mon["x"] + mon["width"] - 1))
        dy = max(mon["y"] - y, 0, y - (mon["y"] + mon["height"] - 1))
        return dx * dx + dy * dy

    return min(monitors, key=distance)["id"]


class XorgBackend(WindowingBackend):
    """EWMH backend driving the usual X11 command line tools."""

    def __init__(self) -> None:
        self._kinds: dict[str, WindowKind] = {}
        self._titles: dict[str, str] = {}
        self._monitors: list[MonitorInfo] | None = None
        self._event_procs: list[asyncio.subprocess.Process] = []
        self._event_tasks: list[asyncio.Task] = []

    @classmethod
    async def is_available(cls) -> bool:
        """Check that an EWMH window manager answers to wmctrl."""
        try:
            proc = await asyncio.create_subprocess_shell(
                "wmctrl -m",
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            return await proc.wait() == 0
        except OSError:
            return False

    # Queries

    async def _window_kind(self, address: str, log: Logger) -> WindowKind:
        """Return the (cached) kind of a window."""
        kind = self._kinds.get(address)
        if kind is None:
            output = await run_command(f"xprop -id {check_address(address)} _NET_WM_WINDOW_TYPE", log=log)
            kind = WindowKind.OTHER if output is None else parse_window_kind(output)
            self._kinds[address] = kind
        return kind

    async def get_windows(self, *, log: Logger) -> list[WindowInfo]:
        """List the windows with `wmctrl -lG`.

        Example wmctrl output:
            0x03a00007  0 1920 27   1280 720  myhost Terminal
            0x04200003 -1 0    0    1920 32   myhost Panel

        Sticky windows (desktop -1) live on every workspace and are skipped.
        """
        output = await run_command("wmctrl -lG", log=log)
        if output is None:
            return []
        monitors = await self.get_monitors(log=log)
        rows = []
        for line in output.splitlines():
            parts = line.split(None, 7)
            if len(parts) < 7:  # noqa: PLR2004
                continue
            try:
                desktop, x, y, width, height = (int(v) for v in parts[1:6])
            except ValueError:
                log.warning("Unexpected wmctrl line: %s", line)
                continue
            address = parts[0]
            if desktop < 0:
                continue
            title = parts[7] if len(parts) > 7 else ""  # noqa: PLR2004
            rows.append((address, desktop, monitor_at(x + width // 2, y + height // 2, monitors), title))

        kinds = await asyncio.gather(*(self._window_kind(row[0], log) for row in rows))
        alive = {row[0] for row in rows}
        for address in list(self._kinds):
            if address not in alive:
                del self._kinds[address]
        self._titles = {row[0]: row[3] for row in rows}
        return [
            WindowInfo(address=address, title=title, kind=kind, workspace=desktop, monitor=monitor)
            for (address, desktop, monitor, title), kind in zip(rows, kinds, strict=True)
        ]

    async def get_window(self, address: str, *, log: Logger) -> WindowInfo | None:
        """Read a single window, without listing the others.

        The title is the one seen by the last `get_windows`, the monitor layout
        too unless none was read yet.

        Example xdotool output:
            WINDOW=60817415
            X=1920
            Y=27
            WIDTH=1280
            HEIGHT=720
            SCREEN=0
        """
        workspace = await self.get_window_workspace(address, log=log)
        if workspace is None:
            return None
        output = await run_command(f"xdotool getwindowgeometry --shell {address}", log=log)
        geometry = shell_vars(output or "")
        try:
            x, y, width, height = (int(geometry[key]) for key in ("X", "Y", "WIDTH", "HEIGHT"))
        except (KeyError, ValueError):
            log.warning("Unexpected xdotool output for %s: %s", address, output)
            return None
        return WindowInfo(
            address=address,
            title=self._titles.get(address, ""),
            kind=await self._window_kind(address, log),
            workspace=workspace,
            monitor=monitor_at(x + width // 2, y + height // 2, await self._known_monitors(log)),
        )

    async def get_window_workspace(self, address: str, *, log: Logger) -> int | None:
        """Read the `_NET_WM_DESKTOP` of one window."""
        output = await run_command(f"xprop -id {check_address(address)} _NET_WM_DESKTOP", log=log)
        return parse_cardinal(output) if output else None

    async def get_monitors(self, *, log: Logger) -> list[MonitorInfo]:
        """Get monitor information from xrandr."""
        output = await run_command("xrandr --query", log=log)
        self._monitors = [] if output is None else parse_xrandr_output(output, log)
        return self._monitors

    async def _known_monitors(self, log: Logger) -> list[MonitorInfo]:
        """The monitors read by the last `get_monitors`, read them if there's none."""
        if self._monitors is None:
            return await self.get_monitors(log=log)
        return self._monitors

    async def workspace_count(self, *, log: Logger) -> int:
        """Read `_NET_NUMBER_OF_DESKTOPS`."""
        output = await run_command("xprop -root _NET_NUMBER_OF_DESKTOPS", log=log)
        value = parse_cardinal(output) if output else None
        return 0 if value is None else value

    async def active_workspace_index(self, *, log: Logger) -> int:
        """Read `_NET_CURRENT_DESKTOP`."""
        output = await run_command("xprop -root _NET_CURRENT_DESKTOP", log=log)
        value = parse_cardinal(output) if output else None
        return -1 if value is None else value

    async def focused_monitor_index(self, *, log: Logger) -> int:
        """Return the monitor under the pointer.

        Example xdotool output:
            X=2300
            Y=540
            SCREEN=0
            WINDOW=65011719
        """
        output = await run_command("xdotool getmouselocation --shell", log=log)
        if output is None:
            return 0
        location = shell_vars(output)
        try:
            x, y = int(location["X"]), int(location["Y"])
        except (KeyError, ValueError):
            log.warning("Unexpected xdotool output: %s", output)
            return 0
        return monitor_at(x, y, await self.get_monitors(log=log))

    async def enabled_extensions(self, *, log: Logger) -> list[str]:
        """List the enabled GNOME Shell extensions."""
        output = await run_command("gnome-extensions list --enabled", log=log)
        if output is None:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def dynamic_workspaces_enabled(self, *, log: Logger) -> bool:
        """Read mutter's dynamic-workspaces preference."""
        output = await run_command("gsettings get org.gnome.mutter dynamic-workspaces", log=log)
        return output is not None and output.strip() == "true"

    # Actions

    async def move_window_to_workspace(self, address: str, index: int, *, log: Logger) -> bool:
        """Move a window with `wmctrl -t`."""
        log.debug("move %s to workspace %d", address, index)
        return await run_command(f"wmctrl -i -r {check_address(address)} -t {int(index)}", log=log) is not None

    async def activate_window(self, address: str, *, log: Logger) -> bool:
        """Activate a window with `wmctrl -a`."""
        log.debug("activate %s", address)
        return await run_command(f"wmctrl -i -a {check_address(address)}", log=log) is not None

    # Events

    async def _pump(self, proc: asyncio.subprocess.Process, reader: asyncio.StreamReader) -> None:
        """Copy the lines printed by `proc` to the shared reader."""
        assert proc.stdout
        while line := await proc.stdout.readline():
            reader.feed_data(line)

    async def _watch(self, reader: asyncio.StreamReader, log: Logger) -> None:
        """Feed `reader` from every event source, EOF when they are all gone."""
        pumps = []
        for command in EVENT_SOURCES:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *shlex.split(command),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                log.info("Event source unavailable (%s): %s", command, e)
                continue
            self._event_procs.append(proc)
            pumps.append(asyncio.create_task(self._pump(proc, reader)))
        self._event_tasks.extend(pumps)
        await asyncio.gather(*pumps, return_exceptions=True)
        reader.feed_eof()

    async def get_event_stream(self, *, log: Logger) -> asyncio.StreamReader:
        """Merge the desktop watchers into a single line reader.

        Example lines:
            _NET_CURRENT_DESKTOP(CARDINAL) = 2
            enabled-extensions: ['appindicatorsupport@rgcjonas.gmail.com']
            dynamic-workspaces: false
        """
        if not await self.is_available():
            msg = "wmctrl can't talk to the window manager"
            raise PerspaceError(msg)
        reader = asyncio.StreamReader()
        self._event_tasks.append(asyncio.create_task(self._watch(reader, log)))
        return reader

    def parse_event(self, raw_data: str, *, log: Logger) -> tuple[str, Any] | None:
        """Parse a raw event line into (event_name, event_data)."""
        line = raw_data.strip()
        if line.startswith("_NET_CURRENT_DESKTOP"):
            value = parse_cardinal(line)
            if value is None:
                log.debug("Ignoring desktop event: %s", line)
                return None
            return "event_workspace", str(value)
        if line.startswith("enabled-extensions:"):
            return "event_extensions", line.split(":", 1)[1].strip()
        if line.startswith("dynamic-workspaces:"):
            return "event_dynamicworkspaces", line.split(":", 1)[1].strip()
        return None

    async def close(self, *, log: Logger) -> None:
        """Stop the event watchers."""
        for proc in self._event_procs:
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.terminate()
                await proc.wait()
        for task in self._event_tasks:
            task.cancel()
        log.debug("event watchers stopped")
        self._event_procs.clear()
        self._event_tasks.clear()

    # Notifications

    async def notify(self, message: str, duration: int = DEFAULT_NOTIFICATION_DURATION_MS, color: str = "ff0000", *, log: Logger) -> None:
        """Send a notification via notify-send (`color` is not supported)."""
        log.info("Notification: %s", message)
        try:
            proc = await asyncio.create_subprocess_exec(
                "notify-send",
                "-t",
                str(duration),
                "Perspace",
                message,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except OSError as e:
            log.debug("notify-send failed: %s", e)
