"""Configuration validation with schema definitions.

Each plugin declares a `ConfigItems` schema made of `ConfigField`s; the
manager validates the loaded section against it and reports the problems.
"""

import difflib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import BOOL_STRINGS

__all__ = [
    "ConfigField",
    "ConfigItems",
    "ConfigValidator",
    "format_config_error",
]


@dataclass
class ConfigField:
    """Describes an expected configuration field for validation.

    Attributes:
        name: The configuration key name
        field_type: Expected type (str, int, bool, list, dict) or tuple of types for union
        required: Whether the field is required
        default: Default value if not provided
        description: Human-readable description for error messages
        choices: List of valid values for enum-like fields
        validator: Custom validator function returning list of error messages
    """

    name: str
    field_type: type | tuple[type, ...] = str
    required: bool = False
    default: Any = None
    description: str = ""
    choices: list | None = None
    validator: Callable[[Any], list[str]] | None = None

    @property
    def type_name(self) -> str:
        """Return human-readable type name (e.g., 'str', 'int or float')."""
        if isinstance(self.field_type, tuple):
            return " or ".join(typ.__name__ for typ in self.field_type)
        return self.field_type.__name__


class ConfigItems(list):
    """A list of ConfigField items with lookup by name."""

    def __init__(self, *args: ConfigField) -> None:
        super().__init__(args)

    def get(self, name: str) -> ConfigField | None:
        """Get a ConfigField by name."""
        for prop in self:
            if prop.name == name:
                return prop
        return None


def _find_similar_key(unknown_key: str, known_keys: list[str]) -> str | None:
    """Find a similar key using fuzzy matching."""
    matches = difflib.get_close_matches(unknown_key, known_keys, n=1)
    if matches:
        return matches[0]
    return None


def format_config_error(plugin: str, field: str, message: str, suggestion: str = "") -> str:
    """Format a configuration error message."""
    msg = f"[{plugin}] Config error for '{field}': {message}"
    if suggestion:
        msg += f" -> {suggestion}"
    return msg


class ConfigValidator:
    """Validates configuration against a schema."""

    def __init__(self, config: dict, plugin_name: str, logger: logging.Logger) -> None:
        self.config = config
        self.plugin_name = plugin_name
        self.log = logger

    def validate(self, schema: ConfigItems) -> list[str]:
        """Validate configuration against schema.

        Returns:
            List of error messages (empty if validation passed)
        """
        errors = []

        for field_def in schema:
            value = self.config.get(field_def.name)

            if field_def.required and value is None:
                errors.append(format_config_error(self.plugin_name, field_def.name, "Missing required field"))
                continue

            if value is None:
                continue

            type_error = self._check_type(field_def, value)
            if type_error:
                errors.append(type_error)
                continue

            if field_def.choices is not None and value not in field_def.choices:
                choices_str = ", ".join(repr(c) for c in field_def.choices)
                errors.append(
                    format_config_error(self.plugin_name, field_def.name, f"Invalid value {value!r}", f"Valid options: {choices_str}")
                )
            if field_def.validator:
                errors.extend(
                    format_config_error(self.plugin_name, field_def.name, validation_error) for validation_error in field_def.validator(value)
                )

        return errors

    def _check_type(self, field_def: ConfigField, value: Any) -> str | None:  # noqa: ANN401
        """Return an error message if `value` doesn't match the expected type."""
        expected = field_def.field_type if isinstance(field_def.field_type, tuple) else (field_def.field_type,)
        for typ in expected:
            if typ is bool:
                if isinstance(value, bool) or (isinstance(value, str) and value.lower().strip() in BOOL_STRINGS):
                    return None
            elif typ in (int, float):
                if isinstance(value, int | float) and not isinstance(value, bool):
                    return None
            elif isinstance(value, typ):
                return None
        return format_config_error(
            self.plugin_name,
            field_def.name,
            f"Expected {field_def.type_name}, got {type(value).__name__}",
        )

    def warn_unknown_keys(self, schema: ConfigItems) -> list[str]:
        """Log unknown configuration keys, suggesting the closest known one.

        Returns:
            List of warning messages
        """
        warnings = []
        known_keys = [f.name for f in schema]
        for key in self.config:
            if key in known_keys:
                continue
            suggestion = _find_similar_key(key, known_keys)
            msg = format_config_error(self.plugin_name, key, "Unknown option", f"did you mean '{suggestion}'?" if suggestion else "")
            self.log.warning(msg)
            warnings.append(msg)
        return warnings
