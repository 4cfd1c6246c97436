"""
Unit tests for the chat CommandRouter.

These tests verify wake-word filtering and the join / leave / status flows
against a fake call platform and a mocked session factory.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from voice_relay.exceptions import HandshakeError, SessionConflictError, SessionStartError
from voice_relay.handlers.command_handlers import GREETING, CommandRouter
from tests.fakes import FakeConnection


class FakeMessage:
    def __init__(self, content, author_is_bot=False, guild_id="guild-1", voice_channel="chan-1"):
        self.content = content
        self.author_is_bot = author_is_bot
        self.guild_id = guild_id
        self.author_voice_channel_id = voice_channel
        self.replies = []
        self.sent = []

    async def reply(self, text):
        self.replies.append(text)

    async def send(self, text):
        self.sent.append(text)


class FakePlatform:
    def __init__(self):
        self.connections = {}
        self.joined = []

    async def join_channel(self, guild_id, channel_id):
        connection = FakeConnection(channel_id=channel_id, guild_id=guild_id)
        self.connections[guild_id] = connection
        self.joined.append(channel_id)
        return connection

    def get_connection(self, guild_id):
        return self.connections.get(guild_id)


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def session_factory(registry):
    async def start(connection, reg, settings):
        session = MagicMock()
        session.guild_id = connection.guild_id
        session.stop = AsyncMock(side_effect=lambda: reg.release(connection.channel_id))
        reg.reserve(connection.channel_id)
        reg.activate(connection.channel_id, session)
        return session

    return AsyncMock(side_effect=start)


@pytest.fixture
def router(platform, registry, settings, session_factory):
    return CommandRouter(platform, registry, settings, session_factory=session_factory, ready_timeout=0.1)


@pytest.mark.asyncio
async def test_messages_without_wake_word_are_ignored(router, platform):
    assert await router.handle_message(FakeMessage("please join")) is None
    assert platform.joined == []


@pytest.mark.asyncio
async def test_bot_messages_are_ignored(router):
    assert await router.handle_message(FakeMessage("larry join", author_is_bot=True)) is None


@pytest.mark.asyncio
async def test_join_starts_session_and_greets(router, platform, registry, session_factory):
    message = FakeMessage("Hey LARRY, join us")

    assert await router.handle_message(message) == "join"

    assert platform.joined == ["chan-1"]
    session_factory.assert_awaited_once()
    assert "chan-1" in registry
    assert message.sent == [GREETING]


@pytest.mark.asyncio
async def test_join_requires_voice_channel(router, platform):
    message = FakeMessage("larry join", voice_channel=None)

    await router.handle_message(message)

    assert message.replies == ["Join a voice channel first!"]
    assert platform.joined == []


@pytest.mark.asyncio
async def test_join_rejected_when_channel_busy(router, platform, registry):
    registry.reserve("chan-1")
    message = FakeMessage("larry join")

    await router.handle_message(message)

    assert message.replies == ["Already in this channel!"]
    assert platform.joined == []


@pytest.mark.asyncio
async def test_join_reports_agent_failure(router, session_factory):
    cause = HandshakeError("Failed to get signed URL: 401", 401)
    error = SessionStartError("Could not connect")
    error.__cause__ = cause
    session_factory.side_effect = error
    message = FakeMessage("larry join")

    await router.handle_message(message)

    assert message.sent == ["Voice connected but the agent failed: Failed to get signed URL: 401"]


@pytest.mark.asyncio
async def test_join_conflict_during_start(router, platform, session_factory):
    session_factory.side_effect = SessionConflictError("chan-1")
    message = FakeMessage("larry join")

    await router.handle_message(message)

    assert message.sent == ["Already in this channel!"]
    assert platform.connections["guild-1"].disconnect_handler is None


@pytest.mark.asyncio
async def test_only_first_keyword_is_handled(router, platform):
    message = FakeMessage("larry join status")

    assert await router.handle_message(message) == "join"

    assert platform.joined == ["chan-1"]
    assert message.replies == ["Joining voice... one moment!"]
    assert message.sent == [GREETING]


@pytest.mark.asyncio
async def test_join_times_out_waiting_for_voice(router, platform, session_factory):
    async def never_ready(guild_id, channel_id):
        connection = FakeConnection(channel_id=channel_id, guild_id=guild_id)
        connection.ready = False
        platform.connections[guild_id] = connection
        return connection

    platform.join_channel = never_ready
    message = FakeMessage("larry join")

    await router.handle_message(message)

    assert platform.connections["guild-1"].destroyed
    session_factory.assert_not_awaited()


@pytest.mark.asyncio
async def test_voice_disconnect_stops_session(router, platform, registry):
    await router.handle_message(FakeMessage("larry join"))
    connection = platform.connections["guild-1"]
    session = registry.get("chan-1")

    await connection.disconnect_handler()

    session.stop.assert_awaited_once()
    assert connection.destroyed


@pytest.mark.asyncio
async def test_leave_stops_guild_sessions(router, platform, registry):
    await router.handle_message(FakeMessage("larry join"))
    session = registry.get("chan-1")
    message = FakeMessage("bye larry")

    assert await router.handle_message(message) == "bye"

    session.stop.assert_awaited_once()
    assert platform.connections["guild-1"].destroyed
    assert message.replies == ["Goodbye!"]
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_leave_when_not_in_voice(router):
    message = FakeMessage("larry leave")

    await router.handle_message(message)

    assert message.replies == ["Not in a voice channel!"]


@pytest.mark.asyncio
async def test_status(router):
    await router.handle_message(FakeMessage("larry join"))
    message = FakeMessage("larry status")

    await router.handle_message(message)

    assert message.replies == ["**Status**\nVoice: connected\nSessions: 1"]
