"""Desktop environment adapters.

`backend.WindowingBackend` is the contract the plugins rely on,
`xorg.XorgBackend` implements it for EWMH compliant X11 desktops and
`proxy.BackendProxy` binds a plugin's logger to every backend call.
"""
