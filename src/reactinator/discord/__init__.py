"""Discord bot components."""

from reactinator.discord.commands import (
    COMMANDS,
    AddReaction,
    Command,
    ListCustomEmojis,
    Ping,
    TextToReactions,
    enabled_commands,
)
from reactinator.discord.handlers import (
    create_config_change_handler,
    create_expiry_callback,
    handle_reaction_add,
)
from reactinator.discord.registry import CommandDispatcher, GuildCommands

__all__ = [
    "COMMANDS",
    "AddReaction",
    "Command",
    "CommandDispatcher",
    "GuildCommands",
    "ListCustomEmojis",
    "Ping",
    "TextToReactions",
    "create_config_change_handler",
    "create_expiry_callback",
    "enabled_commands",
    "handle_reaction_add",
]
