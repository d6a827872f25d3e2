"""Shared bot state threaded through every handler."""

import asyncio
from collections.abc import Iterable

import discord

from reactinator.tracker import DEFAULT_TIMEOUT, ReactionLifecycleTracker


class BotContext:
    """Process-wide state shared by command handlers and timeout tasks.

    Holds the last message seen per channel, the custom emoji cache per
    guild, and the pending reaction tracker. Each table has its own lock and
    no lock is held across a network call.
    """

    def __init__(self, reaction_timeout: float = DEFAULT_TIMEOUT):
        self._last_message_ids: dict[int, int] = {}
        self._last_message_lock = asyncio.Lock()
        self._guild_emojis: dict[int, dict[str, discord.Emoji]] = {}
        self._guild_emojis_lock = asyncio.Lock()
        self.reactions = ReactionLifecycleTracker(timeout=reaction_timeout)

    async def set_last_message(self, channel_id: int, message_id: int) -> None:
        async with self._last_message_lock:
            self._last_message_ids[channel_id] = message_id

    async def last_message(self, channel_id: int) -> int | None:
        async with self._last_message_lock:
            return self._last_message_ids.get(channel_id)

    async def set_guild_emojis(self, guild_id: int, emojis: Iterable[discord.Emoji]) -> None:
        """Replace the cached custom emoji of a guild."""
        mapping = {emoji.name: emoji for emoji in emojis}
        async with self._guild_emojis_lock:
            self._guild_emojis[guild_id] = mapping

    async def guild_emojis(self, guild_id: int) -> dict[str, discord.Emoji]:
        """Copy of the cached custom emoji of a guild, by name."""
        async with self._guild_emojis_lock:
            return dict(self._guild_emojis.get(guild_id, {}))

    async def find_emoji(self, guild_id: int, name: str) -> discord.Emoji | None:
        async with self._guild_emojis_lock:
            return self._guild_emojis.get(guild_id, {}).get(name)
