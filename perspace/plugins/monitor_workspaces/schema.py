"""Configuration schema for the monitor_workspaces plugin."""

from ...constants import DEFAULT_INCOMPATIBLE_EXTENSIONS
from ...validation import ConfigField, ConfigItems


def validate_extension_ids(value: list) -> list[str]:
    """Extension identifiers look like `name@domain`."""
    return [f"'{uuid}' is not an extension identifier" for uuid in value if not isinstance(uuid, str) or "@" not in uuid]


MONITOR_WORKSPACES_SCHEMA = ConfigItems(
    ConfigField(
        "automatic_switching",
        bool,
        default=True,
        description="Resynchronize the other monitors after a global workspace switch",
    ),
    ConfigField(
        "strict_compatibility",
        bool,
        default=False,
        description="Disable the resync when an incompatible extension or dynamic workspaces are active",
    ),
    ConfigField(
        "incompatible_extensions",
        list,
        default=DEFAULT_INCOMPATIBLE_EXTENSIONS,
        description="Extensions which conflict with the resync",
        validator=validate_extension_ids,
    ),
)
