"""Perspace - per-monitor workspaces for desktops sharing one workspace set.

A small asyncio daemon watches the desktop's global workspace switches and
moves windows around so that every monitor appears to keep its own workspace.
The daemon is driven by events coming from the desktop and by commands sent
through a Unix socket by the `perspace` client (usually bound to hotkeys).
"""
