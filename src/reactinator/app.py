"""Application factory for the Reactinator Discord bot."""

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import discord

from reactinator.config import Config
from reactinator.context import BotContext
from reactinator.discord.handlers import (
    create_config_change_handler,
    handle_emojis_update,
    handle_interaction,
    handle_message,
    handle_reaction_add,
    handle_ready,
)
from reactinator.discord.registry import CommandDispatcher

logger = logging.getLogger(__name__)


class ReactinatorBot(discord.Client):
    """Reactinator Discord client with typed state management.

    Slash commands are owned by ``dispatcher`` rather than py-cord's
    application command machinery, so this is a plain ``discord.Client``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.config: Config | None = None
        self.context = BotContext()
        self.dispatcher = CommandDispatcher()

    async def close(self) -> None:
        await self.context.reactions.close()
        if self.config is not None:
            await self.config.stop_watching()
        await super().close()


async def load_config(bot: ReactinatorBot) -> None:
    """Load configuration from CONFIG_PATH if present and watch it for changes."""
    base_config_path = Path(os.environ.get("CONFIG_PATH", "config.toml"))
    overlay_config_path = os.environ.get("CONFIG_OVERLAY_PATH")

    bot.config = Config(
        base_path=base_config_path,
        overlay_path=Path(overlay_config_path) if overlay_config_path else None,
    )
    if not base_config_path.exists():
        logger.info("No config at %s, using defaults", base_config_path)
        return

    bot.config.load()
    logger.info("Config loaded from %s", base_config_path)

    on_change = create_config_change_handler(bot)
    await on_change(bot.config.data)
    bot.config.on_change(on_change)
    await bot.config.start_watching()


def create_app() -> ReactinatorBot:
    """Create and wire the Discord bot.

    Returns:
        Configured ReactinatorBot instance ready to run.
    """
    intents = discord.Intents.default()
    bot = ReactinatorBot(intents=intents)

    @bot.event
    async def on_ready() -> None:
        """Load config, cache emoji and register guild commands."""
        if bot.config is None:
            await load_config(bot)
        await handle_ready(bot)

    @bot.event
    async def on_message(message: discord.Message) -> None:
        await handle_message(bot, message)

    @bot.event
    async def on_interaction(interaction: discord.Interaction) -> None:
        await handle_interaction(bot, interaction)

    @bot.event
    async def on_raw_reaction_add(payload: discord.RawReactionActionEvent) -> None:
        await handle_reaction_add(bot, payload)

    @bot.event
    async def on_guild_emojis_update(
        guild: discord.Guild,
        before: Sequence[discord.Emoji],
        after: Sequence[discord.Emoji],
    ) -> None:
        await handle_emojis_update(bot, guild, after)

    return bot
