"""Tests for guild command tables and dispatch."""

import logging
from unittest.mock import AsyncMock

from conftest import GUILD_ID, make_interaction
from reactinator.discord.commands import AddReaction, Command, Ping
from reactinator.discord.registry import CommandDispatcher, GuildCommands


class RecordingCommand(Command):
    """Command that records the interactions it handles."""

    name = "record"
    description = "Records interactions"

    def __init__(self):
        self.handle = AsyncMock()


class TestGuildCommands:
    """Tests for GuildCommands."""

    def test_insert_by_spec_name(self):
        """Commands are keyed by their registration name."""
        table = GuildCommands()
        ping = Ping()
        assert table.insert(ping.spec(), ping) is ping
        assert table.get("ping") is ping
        assert "ping" in table
        assert len(table) == 1

    def test_get_unknown(self):
        """Unknown names return None."""
        table = GuildCommands()
        assert table.get("nope") is None
        assert table.get(None) is None

    def test_specs_and_names(self):
        """Specs are kept for upload in insertion order."""
        table = GuildCommands()
        for command in (Ping(), AddReaction()):
            table.insert(command.spec(), command)
        assert table.names == ["ping", "add_reaction"]
        assert [spec["name"] for spec in table.specs] == ["ping", "add_reaction"]


class TestCommandDispatcher:
    """Tests for CommandDispatcher."""

    def test_register_creates_table(self):
        """Register creates a guild table on first use."""
        dispatcher = CommandDispatcher()
        ping = Ping()
        assert dispatcher.register(GUILD_ID, ping.spec(), ping) is ping
        assert dispatcher.get(GUILD_ID).get("ping") is ping

    def test_build_replaces_table(self):
        """Build installs a fresh table for the guild."""
        dispatcher = CommandDispatcher()
        dispatcher.build(GUILD_ID, [Ping()])
        table = dispatcher.build(GUILD_ID, [AddReaction()])
        assert dispatcher.get(GUILD_ID) is table
        assert table.names == ["add_reaction"]

    async def test_dispatches_to_command(self, bot):
        """Dispatch invokes the named command."""
        dispatcher = CommandDispatcher()
        command = RecordingCommand()
        dispatcher.build(GUILD_ID, [command])
        interaction = make_interaction("record")

        await dispatcher.dispatch(interaction, bot)

        command.handle.assert_called_once_with(interaction, bot)

    async def test_unknown_command_dropped(self, bot, caplog):
        """Unknown commands are logged without a reply."""
        dispatcher = CommandDispatcher()
        dispatcher.build(GUILD_ID, [Ping()])
        interaction = make_interaction("nope")

        with caplog.at_level(logging.ERROR):
            await dispatcher.dispatch(interaction, bot)

        assert "Unknown command nope" in caplog.text
        interaction.response.send_message.assert_not_called()
        interaction.response.defer.assert_not_called()

    async def test_unregistered_guild_dropped(self, bot, caplog):
        """Guilds without a table are logged with their own message."""
        dispatcher = CommandDispatcher()
        interaction = make_interaction("ping")

        with caplog.at_level(logging.ERROR):
            await dispatcher.dispatch(interaction, bot)

        assert f"Commands not built for guild id {GUILD_ID}" in caplog.text
        interaction.response.send_message.assert_not_called()

    async def test_missing_guild_dropped(self, bot, caplog):
        """Interactions outside a guild are dropped."""
        dispatcher = CommandDispatcher()
        dispatcher.build(GUILD_ID, [Ping()])
        interaction = make_interaction("ping", guild_id=None)

        await dispatcher.dispatch(interaction, bot)

        assert "Expected guild id" in caplog.text
        interaction.response.send_message.assert_not_called()

    async def test_command_failure_contained(self, bot, caplog):
        """Exceptions from a command are logged, not raised."""
        dispatcher = CommandDispatcher()
        command = RecordingCommand()
        command.handle.side_effect = RuntimeError("boom")
        dispatcher.build(GUILD_ID, [command])

        await dispatcher.dispatch(make_interaction("record"), bot)

        assert "Command record failed" in caplog.text

    async def test_logs_rendered_interaction(self, bot, caplog):
        """Interactions are logged the way the user typed them."""
        dispatcher = CommandDispatcher()
        dispatcher.build(GUILD_ID, [Ping()])

        with caplog.at_level(logging.INFO):
            await dispatcher.dispatch(make_interaction("ping"), bot)

        assert "Command interaction: /ping" in caplog.text
