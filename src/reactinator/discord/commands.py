"""Slash command definitions for the Reactinator Discord bot."""

import logging
import re
from typing import TYPE_CHECKING, Any, ClassVar

import discord

from reactinator.context import BotContext
from reactinator.discord.errors import (
    CommandError,
    ConversionError,
    InvalidEmojiError,
    MissingOptionError,
    NoTargetMessageError,
    ReactionError,
)
from reactinator.discord.handlers import create_expiry_callback
from reactinator.discord.options import message_id_option, string_option
from reactinator.emojis import text_to_emoji_list
from reactinator.tracker import PendingReactionSet

if TYPE_CHECKING:
    from reactinator.app import ReactinatorBot
    from reactinator.config import Config

logger = logging.getLogger(__name__)

# Discord rejects message content of 2000 characters or more
MESSAGE_LIMIT = 2000

# Application command type CHAT_INPUT
SLASH_COMMAND_TYPE = 1

STRING_OPTION = discord.SlashCommandOptionType.string.value

OPTION_MESSAGE_ID = "message_id"

CUSTOM_EMOJI_NAME = re.compile(r":?([A-Za-z0-9_]{2,32}):?")


class Command:
    """A slash command registered per guild.

    Subclasses provide the wire level registration payload through
    ``spec()`` and run one interaction through ``handle()``.
    """

    name: ClassVar[str]
    description: ClassVar[str]

    def options(self, config: "Config | None") -> list[dict[str, Any]]:
        return []

    def spec(self, config: "Config | None" = None) -> dict[str, Any]:
        """Registration payload for the application commands endpoint."""
        payload: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "type": SLASH_COMMAND_TYPE,
        }
        options = self.options(config)
        if options:
            payload["options"] = options
        return payload

    async def handle(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        raise NotImplementedError


def message_id_spec() -> dict[str, Any]:
    return {
        "type": STRING_OPTION,
        "name": OPTION_MESSAGE_ID,
        "description": "Message ID to react to. Defaults to last message on channel.",
        "required": False,
    }


async def respond(interaction: discord.Interaction, content: str) -> bool:
    """Send the initial ephemeral response. Failures are logged.

    Returns:
        True if the response was sent
    """
    try:
        await interaction.response.send_message(content, ephemeral=True)
    except discord.HTTPException as e:
        logger.error(
            "Couldn't respond to /%s for user %s: %s",
            (interaction.data or {}).get("name"),
            interaction.user.id,
            e,
        )
        return False
    return True


async def respond_error(interaction: discord.Interaction, error: CommandError) -> None:
    logger.warning(
        "/%s for user %s - %s",
        (interaction.data or {}).get("name"),
        interaction.user.id,
        error,
    )
    await respond(interaction, error.user_message())


async def resolve_message_id(interaction: discord.Interaction, context: BotContext) -> int:
    """Message id from the options, else the last message seen in the channel.

    Raises:
        InvalidOptionError: If the given message id is not numeric
        NoTargetMessageError: If there is nothing to fall back to
    """
    message_id = message_id_option(interaction.data, OPTION_MESSAGE_ID)
    if message_id is not None:
        return message_id

    if interaction.channel_id is not None:
        message_id = await context.last_message(interaction.channel_id)
    if message_id is None:
        raise NoTargetMessageError()
    return message_id


async def resolve_emoji(
    token: str,
    guild_id: int | None,
    context: BotContext,
) -> discord.PartialEmoji:
    """Resolve one emoji token.

    Accepts ``<:name:id>`` and ``<a:name:id>`` custom emoji, ``:name:`` or a
    bare name of a custom emoji cached for the guild, and unicode emoji.

    Raises:
        InvalidEmojiError: If a custom emoji reference cannot be resolved
    """
    if token.startswith("<"):
        emoji = discord.PartialEmoji.from_str(token)
        if not emoji.id:
            raise InvalidEmojiError(token, "malformed custom emoji")
        return emoji

    match = CUSTOM_EMOJI_NAME.fullmatch(token)
    if match:
        cached = await context.find_emoji(guild_id, match.group(1)) if guild_id else None
        if cached is not None:
            return discord.PartialEmoji(name=cached.name, id=cached.id, animated=cached.animated)
        if token.startswith(":") and token.endswith(":"):
            raise InvalidEmojiError(token, "no custom emoji with that name on this server")

    return discord.PartialEmoji(name=token)


async def react_to_message_with(
    interaction: discord.Interaction,
    bot: "ReactinatorBot",
    message_id: int,
    tokens: list[str],
) -> None:
    """Add each token as a reaction, then answer the deferred interaction once.

    Every token is attempted even after a failure; the first error is the
    one reported. Reactions that were added are tracked until the user
    reacts with them too or the timeout removes them.
    """
    try:
        await interaction.response.defer(ephemeral=True)
    except discord.HTTPException as e:
        logger.error("Couldn't defer /%s: %s", (interaction.data or {}).get("name"), e)
        return

    message = bot.get_partial_messageable(interaction.channel_id).get_partial_message(message_id)
    added: list[discord.PartialEmoji] = []
    entry: PendingReactionSet | None = None
    error: CommandError | None = None

    for token in tokens:
        try:
            emoji = await resolve_emoji(token, interaction.guild_id, bot.context)
            try:
                await message.add_reaction(emoji)
            except (discord.HTTPException, discord.ClientException) as e:
                raise ReactionError(token, e) from e
        except CommandError as e:
            logger.warning("User %s - %s", interaction.user.id, e)
            if error is None:
                error = e
            continue
        added.append(emoji)

        if interaction.guild_id is None:
            continue
        if entry is None:
            entry = PendingReactionSet(
                guild_id=interaction.guild_id,
                channel_id=interaction.channel_id,
                message_id=message_id,
                user_id=interaction.user.id,
                emojis={},
            )
        await bot.context.reactions.add_emoji(entry, emoji)

    if entry is not None:
        bot.context.reactions.arm(entry, create_expiry_callback(bot))
        timeout = entry.timeout
    else:
        timeout = bot.context.reactions.timeout
    reactions = " ".join(str(emoji) for emoji in added)
    if error is not None:
        content = error.user_message()
        if added:
            content += (
                f"\nAdded {reactions}, react to them yourself within {timeout:g} seconds "
                "or they will be removed."
            )
    else:
        content = (
            f"Don't forget to react to message `{message_id}` yourself for the reactions "
            f"{reactions} within {timeout:g} seconds."
        )

    try:
        await interaction.edit_original_response(content=content)
    except discord.HTTPException as e:
        logger.error(
            "Couldn't edit response to /%s for user %s: %s",
            (interaction.data or {}).get("name"),
            interaction.user.id,
            e,
        )


def split_lines(lines: list[str], limit: int = MESSAGE_LIMIT) -> list[str]:
    """Join lines into messages shorter than ``limit`` without splitting a line.

    A single line that is too long on its own is truncated.
    """
    chunks: list[str] = []
    current = ""
    for line in lines:
        if len(line) >= limit:
            line = line[: limit - 1]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) >= limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


class Ping(Command):
    """Lightweight acknowledgment."""

    name = "ping"
    description = "Ping command"

    async def handle(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        await respond(interaction, "Pong!")


class AddReaction(Command):
    """React to a message with the given emoji."""

    name = "add_reaction"
    description = "Add reaction(s) to the given message or last message on the channel."

    def options(self, config: "Config | None") -> list[dict[str, Any]]:
        return [
            {
                "type": STRING_OPTION,
                "name": "emoji",
                "description": "Emoji to react with. Can use multiple space separated emojis.",
                "required": True,
            },
            message_id_spec(),
        ]

    async def handle(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        try:
            emojis = string_option(interaction.data, "emoji", required=True)
            tokens = emojis.split()  # type: ignore[union-attr]
            message_id = await resolve_message_id(interaction, bot.context)
        except CommandError as e:
            await respond_error(interaction, e)
            return

        await react_to_message_with(interaction, bot, message_id, tokens)


class TextToReactions(Command):
    """Spell text out as reactions on a message."""

    name = "text_to_reactions"
    description = "Add the text as reactions to the given message or last message on the channel."

    def options(self, config: "Config | None") -> list[dict[str, Any]]:
        return [
            {
                "type": STRING_OPTION,
                "name": "text",
                "description": "Text to spell out with reactions.",
                "required": True,
            },
            message_id_spec(),
        ]

    async def handle(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        try:
            text = string_option(interaction.data, "text", required=True)
            glyphs = text_to_emoji_list(text)  # type: ignore[arg-type]
            if glyphs is None:
                raise ConversionError(text)  # type: ignore[arg-type]
            if not glyphs:
                raise MissingOptionError("text")
            message_id = await resolve_message_id(interaction, bot.context)
        except CommandError as e:
            await respond_error(interaction, e)
            return

        await react_to_message_with(interaction, bot, message_id, glyphs)


class ListCustomEmojis(Command):
    """List the custom emoji cached for the guild."""

    name = "list_custom_emojis"
    description = "List the custom emojis of the server."

    async def handle(self, interaction: discord.Interaction, bot: "ReactinatorBot") -> None:
        emojis: dict[str, discord.Emoji] = {}
        if interaction.guild_id is not None:
            emojis = await bot.context.guild_emojis(interaction.guild_id)

        if not emojis:
            await respond(interaction, "No custom emojis")
            return

        lines = [f"{emoji} — {name}" for name, emoji in sorted(emojis.items())]
        first, *rest = split_lines(lines)
        if not await respond(interaction, first):
            return

        for chunk in rest:
            try:
                await interaction.followup.send(chunk, ephemeral=True)
            except discord.HTTPException as e:
                logger.error("Couldn't send /list_custom_emojis follow-up: %s", e)
                return


COMMANDS: dict[str, type[Command]] = {
    command.name: command for command in (Ping, AddReaction, ListCustomEmojis, TextToReactions)
}


def enabled_commands(config: "Config | None" = None) -> list[Command]:
    """Instantiate the commands enabled in config, all of them by default."""
    names = list(COMMANDS)
    if config is not None:
        names = config.get("commands", "enabled", default=names)

    commands = []
    for name in names:
        command = COMMANDS.get(name)
        if command is None:
            logger.warning("Ignoring unknown command %r in config", name)
            continue
        commands.append(command())
    return commands
