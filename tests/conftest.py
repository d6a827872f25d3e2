"""Shared fixtures for reactinator tests."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import discord
import pytest

from reactinator.context import BotContext
from reactinator.discord.registry import CommandDispatcher

GUILD_ID = 1
CHANNEL_ID = 10
MESSAGE_ID = 1000
USER_ID = 100
BOT_USER_ID = 999


class FakeEmoji:
    """Stand-in for discord.Emoji with the attributes the bot reads."""

    def __init__(self, name: str, id: int, animated: bool = False):
        self.name = name
        self.id = id
        self.animated = animated

    def __str__(self) -> str:
        return f"<:{self.name}:{self.id}>"


def http_error(status: int = 400, message: str = "Unknown Emoji") -> discord.HTTPException:
    """Build an HTTPException like the ones py-cord raises."""
    response = Mock()
    response.status = status
    response.reason = "Bad Request"
    return discord.HTTPException(response, message)


def make_interaction(
    name: str,
    options: dict[str, Any] | None = None,
    guild_id: int | None = GUILD_ID,
    channel_id: int = CHANNEL_ID,
    user_id: int = USER_ID,
) -> Mock:
    """Mock application command interaction with raw option data."""
    interaction = Mock()
    interaction.type = discord.InteractionType.application_command
    interaction.data = {
        "name": name,
        "options": [
            {"name": key, "type": 3, "value": value} for key, value in (options or {}).items()
        ],
    }
    interaction.guild_id = guild_id
    interaction.channel_id = channel_id
    interaction.user = Mock(id=user_id)
    interaction.response = Mock()
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.followup = Mock()
    interaction.followup.send = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    return interaction


@pytest.fixture
def partial_message() -> Mock:
    """Mock PartialMessage reactions are added to and removed from."""
    message = Mock()
    message.add_reaction = AsyncMock()
    message.remove_reaction = AsyncMock()
    return message


@pytest.fixture
def dm_user() -> Mock:
    """Mock user receiving direct messages."""
    user = Mock(id=USER_ID)
    user.send = AsyncMock()
    return user


@pytest.fixture
def bot(partial_message: Mock, dm_user: Mock) -> Mock:
    """Mock ReactinatorBot with real context and dispatcher."""
    bot = Mock()
    bot.config = None
    bot.user = Mock(id=BOT_USER_ID)
    bot.context = BotContext(reaction_timeout=0.05)
    bot.dispatcher = CommandDispatcher()
    bot.get_partial_messageable.return_value.get_partial_message.return_value = partial_message
    bot.get_or_fetch_user = AsyncMock(return_value=dm_user)
    return bot


@pytest.fixture
def base_config_content() -> str:
    """Minimal valid TOML config."""
    return """
[reactions]
timeout = 5.0

[logging]
level = "DEBUG"

[commands]
enabled = ["ping", "add_reaction"]
"""


@pytest.fixture
def base_config_file(tmp_path: Path, base_config_content: str) -> Path:
    """Create a temporary base config file."""
    config_file = tmp_path / "config.toml"
    config_file.write_text(base_config_content)
    return config_file


@pytest.fixture
def mock_config() -> Mock:
    """Mock Config object with .get() method."""
    config = Mock()
    config.get = Mock(
        side_effect=lambda *keys, default=None: {
            ("commands", "enabled"): ["ping", "list_custom_emojis"],
            ("reactions", "timeout"): 10.0,
        }.get(keys, default)
    )
    return config
