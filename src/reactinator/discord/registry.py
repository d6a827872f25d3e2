"""Per-guild command tables and interaction dispatch."""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import discord

from reactinator.discord.options import interaction_to_string

if TYPE_CHECKING:
    from reactinator.app import ReactinatorBot
    from reactinator.config import Config
    from reactinator.discord.commands import Command

logger = logging.getLogger(__name__)


class GuildCommands:
    """Commands of one guild, by name."""

    def __init__(self) -> None:
        self._commands: dict[str, "Command"] = {}
        self._specs: dict[str, dict[str, Any]] = {}

    def insert(self, spec: dict[str, Any], command: "Command") -> "Command":
        """Bind a registration payload's name to the command handling it."""
        name = spec["name"]
        self._commands[name] = command
        self._specs[name] = spec
        return command

    def get(self, name: str | None) -> "Command | None":
        if name is None:
            return None
        return self._commands.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._commands)

    @property
    def specs(self) -> list[dict[str, Any]]:
        return list(self._specs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)


class CommandDispatcher:
    """Routes application command interactions to their guild's command table.

    Tables are built when the bot becomes ready and replaced as a whole.
    Interactions that cannot be routed are logged and dropped without a
    reply.
    """

    def __init__(self) -> None:
        self._guilds: dict[int, GuildCommands] = {}

    def register(self, guild_id: int, spec: dict[str, Any], command: "Command") -> "Command":
        """Add one command to a guild's table, creating the table if needed."""
        return self._guilds.setdefault(guild_id, GuildCommands()).insert(spec, command)

    def build(
        self,
        guild_id: int,
        commands: Iterable["Command"],
        config: "Config | None" = None,
    ) -> GuildCommands:
        """Build and install a guild's command table.

        Returns:
            The new table, whose ``specs`` are ready to upload
        """
        table = GuildCommands()
        for command in commands:
            table.insert(command.spec(config), command)
        self._guilds[guild_id] = table
        return table

    def get(self, guild_id: int) -> GuildCommands | None:
        return self._guilds.get(guild_id)

    async def dispatch(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        """Run the command an interaction names. Never raises."""
        data = interaction.data or {}
        logger.info("Command interaction: %s", interaction_to_string(data))

        guild_id = interaction.guild_id
        if guild_id is None:
            logger.error("Expected guild id for command %s", data.get("name"))
            return

        table = self._guilds.get(guild_id)
        if table is None:
            logger.error("Commands not built for guild id %s", guild_id)
            return

        command = table.get(data.get("name"))
        if command is None:
            logger.error("Unknown command %s for guild id %s", data.get("name"), guild_id)
            return

        try:
            await command.handle(interaction, bot)
        except Exception:
            logger.exception("Command %s failed in guild %s", data.get("name"), guild_id)
