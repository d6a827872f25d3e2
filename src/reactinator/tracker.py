"""Lifecycle tracking for reactions the bot adds on a user's behalf."""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from typing import Any

import discord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def reaction_key(emoji: discord.PartialEmoji | discord.Emoji | str) -> str:
    """Identity of a reaction emoji, stable between adding and receiving it.

    Custom emoji are identified by id. Unicode emoji by their glyph with
    variation selectors stripped, since clients are not consistent about them.
    """
    if isinstance(emoji, str):
        emoji = discord.PartialEmoji.from_str(emoji)
    if emoji.id:
        return str(emoji.id)
    return (emoji.name or "").replace("\ufe0f", "")


@dataclass(eq=False)
class PendingReactionSet:
    """Reactions added for one command invocation, awaiting the user's own reactions.

    ``emojis`` maps reaction keys to the emoji still pending. The set is
    cleared once it is empty and must not be matched again. ``timeout`` is
    the delay the set was armed with.
    """

    guild_id: int
    channel_id: int
    message_id: int
    user_id: int
    emojis: dict[str, discord.PartialEmoji]
    created_at: float = field(default_factory=time.monotonic)
    timeout: float | None = None
    id: str = field(default_factory=lambda: "")
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        if not self.id:
            self.id = str(uuid.uuid4())[:8]

    @classmethod
    def from_emojis(
        cls,
        guild_id: int,
        channel_id: int,
        message_id: int,
        user_id: int,
        emojis: Iterable[discord.PartialEmoji],
    ) -> "PendingReactionSet":
        """Build a set from emoji, collapsing duplicates."""
        return cls(
            guild_id=guild_id,
            channel_id=channel_id,
            message_id=message_id,
            user_id=user_id,
            emojis={reaction_key(emoji): emoji for emoji in emojis},
        )

    @property
    def cleared(self) -> bool:
        return not self.emojis

    @property
    def pending(self) -> list[discord.PartialEmoji]:
        return list(self.emojis.values())

    def matches(self, channel_id: int, message_id: int, user_id: int) -> bool:
        return (
            self.channel_id == channel_id
            and self.message_id == message_id
            and self.user_id == user_id
        )

    async def discard(self, key: str) -> bool:
        """Remove one pending emoji.

        Returns:
            True if the emoji was pending
        """
        async with self._lock:
            return self.emojis.pop(key, None) is not None

    async def include(self, emoji: discord.PartialEmoji) -> None:
        """Add an emoji the bot reacted with."""
        async with self._lock:
            self.emojis[reaction_key(emoji)] = emoji

    async def drain(self) -> list[discord.PartialEmoji]:
        """Remove and return every pending emoji."""
        async with self._lock:
            remaining = list(self.emojis.values())
            self.emojis.clear()
            return remaining


ExpiryCallback = Callable[
    [PendingReactionSet, list[discord.PartialEmoji]], Coroutine[Any, Any, None]
]


class ReactionLifecycleTracker:
    """Per-guild pending reaction sets with timeout driven cleanup.

    Features:
    - Entries are stored by id, eviction is by identity
    - A user reaction removes the emoji from every matching entry
    - Each entry gets one timer armed at creation, never reset or cancelled
    - Expired entries hand their remaining emoji to an expiry callback

    Lock order is tracker lock, then entry lock. Neither is held while a
    callback runs.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

        self._entries: dict[int, dict[str, PendingReactionSet]] = {}
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def size(self) -> int:
        """Number of live entries across all guilds."""
        return sum(len(entries) for entries in self._entries.values())

    def pending(self, guild_id: int) -> list[PendingReactionSet]:
        """Snapshot of the live entries for a guild."""
        return list(self._entries.get(guild_id, {}).values())

    async def add(self, entry: PendingReactionSet) -> None:
        """Insert an entry for matching. Cleared entries are ignored."""
        if entry.cleared:
            return
        async with self._lock:
            self._entries.setdefault(entry.guild_id, {})[entry.id] = entry

    async def track(
        self, entry: PendingReactionSet, on_expire: ExpiryCallback
    ) -> asyncio.Task | None:
        """Insert an entry and arm its timeout.

        Returns:
            The timeout task, or None if the entry has nothing pending
        """
        if entry.cleared:
            return None
        await self.add(entry)
        return self.arm(entry, on_expire)

    async def add_emoji(self, entry: PendingReactionSet, emoji: discord.PartialEmoji) -> None:
        """Add an emoji to an entry as soon as the bot has reacted with it.

        The entry is inserted for matching if it is not live, so the user can
        confirm early emoji while later ones are still being added.
        """
        async with self._lock:
            await entry.include(emoji)
            self._entries.setdefault(entry.guild_id, {})[entry.id] = entry

    def arm(self, entry: PendingReactionSet, on_expire: ExpiryCallback) -> asyncio.Task:
        """Start the timeout task for an entry.

        The delay is measured from the entry's creation time with the
        timeout configured right now, which is recorded on the entry.
        """
        entry.timeout = self.timeout
        delay = max(0.0, entry.created_at + entry.timeout - time.monotonic())
        task = asyncio.create_task(self._expire_after(entry, delay, on_expire))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def confirm(
        self,
        guild_id: int,
        channel_id: int,
        message_id: int,
        user_id: int,
        emoji: discord.PartialEmoji | str,
    ) -> list[PendingReactionSet]:
        """Record that the user reacted with an emoji.

        Returns:
            Entries the emoji was pending for
        """
        key = reaction_key(emoji)
        confirmed: list[PendingReactionSet] = []

        async with self._lock:
            entries = self._entries.get(guild_id)
            if not entries:
                return confirmed

            for entry in list(entries.values()):
                if not entry.matches(channel_id, message_id, user_id):
                    continue
                if not await entry.discard(key):
                    continue
                confirmed.append(entry)
                if entry.cleared:
                    self._evict(entry)
                    logger.debug("Reaction set %s confirmed by user %s", entry.id, user_id)

        return confirmed

    async def expire(self, entry: PendingReactionSet) -> list[discord.PartialEmoji]:
        """Force an entry to clear.

        Returns:
            Emoji that were still pending, empty if the entry had already cleared
        """
        async with self._lock:
            remaining = await entry.drain()
            self._evict(entry)
        return remaining

    async def close(self) -> None:
        """Cancel outstanding timers. Only used on shutdown."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _evict(self, entry: PendingReactionSet) -> None:
        entries = self._entries.get(entry.guild_id)
        if entries is None or entries.get(entry.id) is not entry:
            return
        del entries[entry.id]
        if not entries:
            del self._entries[entry.guild_id]

    async def _expire_after(
        self,
        entry: PendingReactionSet,
        delay: float,
        on_expire: ExpiryCallback,
    ) -> None:
        await asyncio.sleep(delay)

        remaining = await self.expire(entry)
        if not remaining:
            return

        logger.info(
            "Reaction set %s timed out with %d unconfirmed reaction(s)",
            entry.id,
            len(remaining),
        )
        try:
            await on_expire(entry, remaining)
        except Exception:
            logger.exception("Expiry callback failed for reaction set %s", entry.id)
