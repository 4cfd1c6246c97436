"""
Voice session tying one call connection to one conversational agent.

This module provides the VoiceSession class which owns the playback queue,
the remote link and the capture manager for a single voice channel. It is
the only object the command dispatcher talks to: start() to bring a session
up, stop() to tear it down and status() to report on it.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel

from voice_relay.audio.capture import CaptureManager
from voice_relay.audio.opus import OpusDecoder
from voice_relay.audio.playback import PlaybackQueue
from voice_relay.audio.streams import compose
from voice_relay.audio.transcoder import Transcoder
from voice_relay.bot.remote_link import RemoteLink
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.config.settings import RelaySettings
from voice_relay.exceptions import (
    ConfigurationError,
    HandshakeError,
    SessionStartError,
    TransportError,
)
from voice_relay.models.audio import CALL_FORMAT, REMOTE_FORMAT
from voice_relay.models.registry import SessionRegistry
from voice_relay.platform import VoiceConnection

logger = logging.getLogger(LOGGER_NAME)


class SessionStatus(BaseModel):
    """Snapshot reported to the command dispatcher."""

    link_open: bool
    session_count: int


class VoiceSession:
    """
    Bidirectional audio session for one voice channel.

    Data flows call -> CaptureManager -> RemoteLink for user speech and
    RemoteLink -> PlaybackQueue -> call player for agent speech.
    """

    def __init__(
        self,
        connection: VoiceConnection,
        registry: SessionRegistry,
        settings: RelaySettings,
        transcoder: Optional[Transcoder] = None,
        decoder: Optional[OpusDecoder] = None,
    ):
        self.connection = connection
        self.registry = registry
        self.channel_id = connection.channel_id
        self.guild_id = connection.guild_id

        self.transcoder = transcoder or Transcoder()
        self.decoder = decoder or OpusDecoder(CALL_FORMAT)

        self.playback = PlaybackQueue(connection.player, self.transcoder)
        self.link = RemoteLink(settings.api_key, settings.agent_id, self.playback, api_base=settings.api_base)
        self.capture = CaptureManager(
            connection.receiver,
            connection.self_id,
            sink=self.link.send_audio,
            transform=compose(self.decoder.decode, self.transcoder.stage(CALL_FORMAT, REMOTE_FORMAT)),
            silence_duration_ms=settings.silence_duration_ms,
        )
        self._stopped = False
        self._stop_task: Optional[asyncio.Task] = None

    @classmethod
    async def start(
        cls,
        connection: VoiceConnection,
        registry: SessionRegistry,
        settings: RelaySettings,
        **kwargs: Any,
    ) -> "VoiceSession":
        """
        Start a session on a ready voice connection.

        Args:
            connection: Ready call connection for the channel
            registry: Registry the session is recorded in
            settings: Relay settings holding the credential and agent id
            **kwargs: Passed to the constructor (transcoder, decoder)

        Returns:
            The running session, registered under its channel id

        Raises:
            SessionConflictError: if the channel already has a session
            SessionStartError: if configuration or the agent handshake fails;
                nothing stays registered
        """
        try:
            settings.require_credentials()
        except ConfigurationError as e:
            raise SessionStartError(str(e)) from e

        registry.reserve(connection.channel_id)
        session = cls(connection, registry, settings, **kwargs)
        try:
            conversation_id = await session.link.connect()
        except (HandshakeError, TransportError) as e:
            registry.release(connection.channel_id)
            await session.link.disconnect()
            logger.error(f"Agent connection failed for channel {connection.channel_id}: {e}")
            raise SessionStartError(f"Could not connect to the conversational agent: {e}") from e
        except BaseException:
            # Cancelled mid-handshake: the link may already be open with a receive task running
            registry.release(connection.channel_id)
            await session.link.disconnect()
            raise

        session.link.set_handlers(lost_handler=session._on_link_lost)
        registry.activate(connection.channel_id, session)
        session.capture.start()
        logger.info(f"Voice session started on channel {session.channel_id} (conversation {conversation_id})")
        return session

    async def _on_link_lost(self, error: Optional[TransportError]) -> None:
        logger.warning(f"Agent link lost for channel {self.channel_id}: {error or 'closed by agent'}")
        # stop() disconnects the link, so it must not run inside the link's receive task
        self._stop_task = asyncio.create_task(self.stop())

    async def stop(self) -> None:
        """Tear the session down and release its channel. Idempotent."""
        if self._stopped:
            return
        self._stopped = True

        await self.capture.close()
        await self.link.disconnect()
        self.playback.stop()
        self.registry.release(self.channel_id, self)
        logger.info(f"Voice session stopped on channel {self.channel_id}")

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def status(self) -> SessionStatus:
        return SessionStatus(link_open=self.link.is_open, session_count=len(self.registry))

    def describe(self) -> Dict[str, Any]:
        """Per-session details for the status endpoint."""
        return {
            "channel_id": self.channel_id,
            "guild_id": self.guild_id,
            "conversation_id": self.link.conversation_id,
            "link_open": self.link.is_open,
            "active_captures": self.capture.active_participants,
            "playing": self.playback.is_playing,
        }
