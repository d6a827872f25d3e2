"""Event handlers and callback factories for the Discord bot."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

import discord

from reactinator.tracker import PendingReactionSet

if TYPE_CHECKING:
    from reactinator.app import ReactinatorBot

logger = logging.getLogger(__name__)


def message_url(entry: PendingReactionSet) -> str:
    return (
        f"https://discord.com/channels/{entry.guild_id}/{entry.channel_id}/{entry.message_id}"
    )


def create_expiry_callback(
    bot: "ReactinatorBot",
) -> Callable[[PendingReactionSet, list[discord.PartialEmoji]], Awaitable[None]]:
    """Create the callback run when a pending reaction set times out.

    Args:
        bot: The ReactinatorBot whose reactions are removed

    Returns:
        Async callback removing each remaining reaction and notifying the user
    """

    async def on_expire(entry: PendingReactionSet, remaining: list[discord.PartialEmoji]) -> None:
        message = bot.get_partial_messageable(entry.channel_id).get_partial_message(
            entry.message_id
        )

        removed: list[discord.PartialEmoji] = []
        failed: list[discord.PartialEmoji] = []
        for emoji in remaining:
            try:
                await message.remove_reaction(emoji, bot.user)  # type: ignore[arg-type]
            except discord.HTTPException as e:
                logger.error(
                    "Couldn't remove reaction %s from message %s: %s",
                    emoji,
                    entry.message_id,
                    e,
                )
                failed.append(emoji)
                continue
            logger.info("Removed reaction %s from message %s", emoji, entry.message_id)
            removed.append(emoji)

        timeout = entry.timeout if entry.timeout is not None else bot.context.reactions.timeout
        lines = [
            f"You didn't react to {message_url(entry)} yourself within {timeout:g} seconds."
        ]
        if removed:
            lines.append(f"Removed reactions: {' '.join(str(e) for e in removed)}")
        if failed:
            lines.append(f"Couldn't remove reactions: {' '.join(str(e) for e in failed)}")

        try:
            user = await bot.get_or_fetch_user(entry.user_id)
            if user is None:
                logger.error("Couldn't find user %s to notify", entry.user_id)
                return
            await user.send("\n".join(lines))
        except discord.HTTPException as e:
            logger.error("Couldn't send direct message to user %s: %s", entry.user_id, e)

    return on_expire


def create_config_change_handler(
    bot: "ReactinatorBot",
) -> Callable[[dict[str, Any]], Awaitable[None]]:
    """Create a config change callback for the given bot.

    Args:
        bot: The ReactinatorBot instance to update on config changes

    Returns:
        Async callback function for config.on_change()
    """

    async def on_config_change(new_config: dict[str, Any]) -> None:
        reactions = new_config.get("reactions", {})
        if "timeout" in reactions:
            try:
                timeout = float(reactions["timeout"])
            except (TypeError, ValueError):
                timeout = -1.0
            if not timeout >= 0:
                logger.error(
                    "Invalid reactions.timeout %r, keeping %gs",
                    reactions["timeout"],
                    bot.context.reactions.timeout,
                )
            elif timeout != bot.context.reactions.timeout:
                bot.context.reactions.timeout = timeout
                logger.info("Reaction timeout updated: %gs", timeout)

        level = new_config.get("logging", {}).get("level")
        if level:
            numeric = logging.getLevelName(str(level).upper())
            if isinstance(numeric, int):
                logging.getLogger().setLevel(numeric)
            else:
                logger.error("Invalid logging.level %r, keeping current level", level)

    return on_config_change


async def refresh_guild_emojis(bot: "ReactinatorBot", guild: discord.Guild) -> None:
    """Fetch a guild's custom emoji into the cache, falling back to the gateway copy."""
    try:
        emojis: Sequence[discord.Emoji] = await guild.fetch_emojis()
    except discord.HTTPException as e:
        logger.warning("Couldn't fetch emojis for guild %s, using cached list: %s", guild.id, e)
        emojis = guild.emojis
    await bot.context.set_guild_emojis(guild.id, emojis)


async def register_guild_commands(bot: "ReactinatorBot", guild: discord.Guild) -> None:
    """Build the guild's command table and push it to Discord."""
    from reactinator.discord.commands import enabled_commands

    table = bot.dispatcher.build(guild.id, enabled_commands(bot.config), bot.config)
    try:
        registered = await bot.http.bulk_upsert_guild_commands(
            bot.application_id, guild.id, table.specs
        )
    except discord.HTTPException as e:
        logger.error("Couldn't create commands for guild %s due to `%s`", guild.id, e)
        return
    logger.info(
        "Guild %s has the commands %s",
        guild.id,
        [command.get("name") for command in registered],
    )


async def handle_ready(bot: "ReactinatorBot") -> None:
    """Cache emoji and register commands for every guild the bot is in."""
    logger.info("%s connected", bot.user)
    for guild in bot.guilds:
        await refresh_guild_emojis(bot, guild)
        await register_guild_commands(bot, guild)


async def handle_message(bot: "ReactinatorBot", message: discord.Message) -> None:
    """Remember the last message per channel, ignoring the bot's own."""
    if bot.user is not None and message.author.id == bot.user.id:
        return
    await bot.context.set_last_message(message.channel.id, message.id)


async def handle_interaction(bot: "ReactinatorBot", interaction: discord.Interaction) -> None:
    if interaction.type != discord.InteractionType.application_command:
        return
    await bot.dispatcher.dispatch(interaction, bot)


async def handle_reaction_add(
    bot: "ReactinatorBot",
    payload: discord.RawReactionActionEvent,
) -> None:
    """Confirm pending reactions when the requesting user reacts too.

    Args:
        bot: The ReactinatorBot instance
        payload: The reaction event payload
    """
    if bot.user is not None and payload.user_id == bot.user.id:
        return
    if payload.guild_id is None:
        return

    await bot.context.reactions.confirm(
        guild_id=payload.guild_id,
        channel_id=payload.channel_id,
        message_id=payload.message_id,
        user_id=payload.user_id,
        emoji=payload.emoji,
    )


async def handle_emojis_update(
    bot: "ReactinatorBot",
    guild: discord.Guild,
    after: Sequence[discord.Emoji],
) -> None:
    await bot.context.set_guild_emojis(guild.id, after)
    logger.info("Guild %s now has %d custom emoji(s)", guild.id, len(after))
