"""Built-in plugins for Perspace.

Each plugin module (or package) exports an Extension class inheriting from
`perspace.plugins.interface.Plugin`. Plugins are loaded dynamically based on
the 'plugins' list of the [perspace] config section.
"""

__all__ = ["interface"]
