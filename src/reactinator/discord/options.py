"""Helpers for reading raw application command interaction data."""

from typing import Any

from reactinator.discord.errors import InvalidOptionError, MissingOptionError


def find_option(data: dict[str, Any] | None, name: str) -> Any | None:
    """Return the value of a top level option, or None if it is absent."""
    for option in (data or {}).get("options", []):
        if option.get("name") == name:
            return option.get("value")
    return None


def string_option(data: dict[str, Any] | None, name: str, required: bool = False) -> str | None:
    """Read a string option.

    Raises:
        MissingOptionError: If the option is required and absent or blank
        InvalidOptionError: If the value is not a string
    """
    value = find_option(data, name)
    if value is None:
        if required:
            raise MissingOptionError(name)
        return None
    if not isinstance(value, str):
        raise InvalidOptionError(name, value, "provided in a string")
    if required and not value.strip():
        raise MissingOptionError(name)
    return value


def message_id_option(data: dict[str, Any] | None, name: str = "message_id") -> int | None:
    """Read an optional message id given as a numeric string."""
    value = string_option(data, name)
    if value is None or not value.strip():
        return None
    try:
        message_id = int(value.strip())
    except ValueError:
        raise InvalidOptionError(name, value, "a numeric message id") from None
    if message_id <= 0:
        raise InvalidOptionError(name, value, "a numeric message id")
    return message_id


def option_to_string(option: dict[str, Any]) -> str:
    parts = [str(option.get("name", ""))]
    if option.get("value") is not None:
        parts.append(str(option["value"]))
    parts.extend(option_to_string(sub) for sub in option.get("options", []))
    return " ".join(parts)


def interaction_to_string(data: dict[str, Any] | None) -> str:
    """Render interaction data the way the user typed it, for logs.

    Example:
        {"name": "add_reaction", "options": [{"name": "emoji", "value": "x"}]}
        renders as "/add_reaction emoji x"
    """
    data = data or {}
    options = " ".join(option_to_string(option) for option in data.get("options", []))
    name = f"/{data.get('name', '')}"
    return f"{name} {options}" if options else name
