"""
Text command handling for the voice relay.

Chat messages that mention the wake word are routed by keyword:
- join: connect to the author's voice channel and start a voice session
- leave / bye: stop the guild's sessions and leave voice
- status: report the voice connection and session count

This layer only decides when sessions start and stop; all audio handling
lives in VoiceSession.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from voice_relay.bot.session import VoiceSession
from voice_relay.config.constants import LOGGER_NAME, VOICE_READY_TIMEOUT
from voice_relay.config.settings import RelaySettings
from voice_relay.exceptions import SessionConflictError, SessionStartError
from voice_relay.models.registry import SessionRegistry
from voice_relay.platform import CallPlatform, ChatMessage, VoiceConnection

logger = logging.getLogger(LOGGER_NAME)

GREETING = "**Hello!** I'm ready to talk. Speak and I will respond!"

CommandHandler = Callable[[ChatMessage], Awaitable[None]]
SessionFactory = Callable[[VoiceConnection, SessionRegistry, RelaySettings], Awaitable[VoiceSession]]


class CommandRouter:
    """Routes wake-word chat messages to voice session lifecycle actions."""

    def __init__(
        self,
        platform: CallPlatform,
        registry: SessionRegistry,
        settings: RelaySettings,
        session_factory: SessionFactory = VoiceSession.start,
        ready_timeout: float = VOICE_READY_TIMEOUT,
    ):
        self.platform = platform
        self.registry = registry
        self.settings = settings
        self.session_factory = session_factory
        self.ready_timeout = ready_timeout

        # Checked in order; the first keyword found in the message wins
        self.handlers: Dict[str, CommandHandler] = {
            "join": self.handle_join,
            "leave": self.handle_leave,
            "bye": self.handle_leave,
            "status": self.handle_status,
        }

    async def handle_message(self, message: ChatMessage) -> Optional[str]:
        """
        Dispatch one chat message.

        At most one command runs per message: keywords are checked in the order
        join, leave, bye, status and the first one found is handled, so
        "larry join status" only joins.

        Returns:
            The command keyword that was handled, or None if the message was ignored
        """
        if message.author_is_bot:
            return None
        content = message.content.lower()
        if self.settings.wake_word not in content:
            return None

        for keyword, handler in self.handlers.items():
            if keyword in content:
                logger.info(f"Handling '{keyword}' command in guild {message.guild_id}")
                await handler(message)
                return keyword
        return None

    async def handle_join(self, message: ChatMessage) -> None:
        channel_id = message.author_voice_channel_id
        if not channel_id:
            await message.reply("Join a voice channel first!")
            return
        if channel_id in self.registry:
            await message.reply("Already in this channel!")
            return

        try:
            connection = await self.platform.join_channel(message.guild_id, channel_id)
        except Exception as e:
            logger.error(f"Failed to join voice channel {channel_id}: {e}", exc_info=True)
            await message.reply(f"Error: {e}")
            return

        await message.reply("Joining voice... one moment!")

        try:
            await connection.wait_until_ready(self.ready_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Voice connection to {channel_id} not ready after {self.ready_timeout}s")
            connection.destroy()
            await message.send("Could not connect to voice in time, please try again.")
            return

        logger.info(f"Voice ready in channel {channel_id}")

        try:
            await self.session_factory(connection, self.registry, self.settings)
        except SessionConflictError:
            await message.send("Already in this channel!")
            return
        except SessionStartError as e:
            cause = e.__cause__ or e
            await message.send(f"Voice connected but the agent failed: {cause}")
            return

        connection.on_disconnect(lambda: self._handle_voice_disconnect(channel_id, connection))
        await message.send(GREETING)

    async def _handle_voice_disconnect(self, channel_id: str, connection: VoiceConnection) -> None:
        session = self.registry.get(channel_id)
        if session:
            await session.stop()
        connection.destroy()
        logger.info(f"Voice disconnected from channel {channel_id}")

    async def handle_leave(self, message: ChatMessage) -> None:
        connection = self.platform.get_connection(message.guild_id)
        if connection is None:
            await message.reply("Not in a voice channel!")
            return

        for session in self.registry.for_guild(message.guild_id):
            await session.stop()
        connection.destroy()
        await message.reply("Goodbye!")

    async def handle_status(self, message: ChatMessage) -> None:
        connection = self.platform.get_connection(message.guild_id)
        voice = "connected" if connection else "not connected"
        await message.reply(f"**Status**\nVoice: {voice}\nSessions: {len(self.registry)}")
