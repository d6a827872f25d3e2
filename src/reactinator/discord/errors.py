"""Errors reported back to the user who invoked a command."""

from typing import Any


class CommandError(Exception):
    """Base command error. ``str(error)`` is shown to the invoking user."""

    def user_message(self) -> str:
        return f"error: {self}"


class MissingOptionError(CommandError):
    """A required option was not provided."""

    def __init__(self, name: str):
        super().__init__(f"requires {name}")
        self.name = name


class InvalidOptionError(CommandError):
    """An option was provided with the wrong type or an unparsable value."""

    def __init__(self, name: str, value: Any, expected: str):
        super().__init__(f"{name} must be {expected}, got `{value}`")
        self.name = name
        self.value = value


class NoTargetMessageError(CommandError):
    """No message id was given and no message was seen in the channel yet."""

    def __init__(self):
        super().__init__("no last message available and no message id provided")


class InvalidEmojiError(CommandError):
    """An emoji token could not be resolved."""

    def __init__(self, token: str, reason: str):
        super().__init__(f"invalid emoji `{token}`: {reason}")
        self.token = token


class ReactionError(CommandError):
    """The platform refused to add a reaction."""

    def __init__(self, token: str, error: Exception):
        super().__init__(f"could not react with `{token}`: {error}")
        self.token = token
        self.error = error


class ConversionError(CommandError):
    """Text could not be converted to a sequence of distinct emoji."""

    def __init__(self, text: str):
        super().__init__(
            f"could not convert `{text}` to reactions, a character is unsupported "
            "or repeats too often"
        )
        self.text = text
