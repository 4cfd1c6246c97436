"""
Interfaces consumed from the chat/call platform.

The relay never talks to a chat platform SDK directly. An adapter for a
concrete platform implements these protocols and hands a VoiceConnection to
VoiceSession.start. All callbacks declared here are invoked on the asyncio
event loop that runs the session; an adapter whose SDK fires callbacks from
its own threads must marshal them with loop.call_soon_threadsafe.
"""

from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol

from voice_relay.config.constants import DEFAULT_SILENCE_DURATION_MS

SpeakingHandler = Callable[[str], None]
AfterPlayback = Callable[[Optional[Exception]], None]


@dataclass(frozen=True)
class EndCondition:
    """When a participant audio subscription ends."""

    silence_duration_ms: int = DEFAULT_SILENCE_DURATION_MS

    @classmethod
    def after_silence(cls, duration_ms: int) -> "EndCondition":
        return cls(silence_duration_ms=duration_ms)


class AudioReceiver(Protocol):
    """Incoming audio side of a voice connection."""

    def subscribe(self, participant_id: str, end: EndCondition) -> AsyncIterator[bytes]:
        """Opus packets (48kHz stereo) from one participant until the end condition hits."""
        ...

    def add_speaking_handler(self, handler: SpeakingHandler) -> None:
        """Register a callback fired with the participant id when they start speaking."""
        ...

    def remove_speaking_handler(self, handler: SpeakingHandler) -> None:
        ...


class AudioPlayer(Protocol):
    """Outgoing audio side of a voice connection."""

    def play(self, source: AsyncIterator[bytes], after: AfterPlayback) -> None:
        """
        Start playing a s16le 48kHz stereo stream.

        after(error) is called exactly once when the source is exhausted,
        when stop() interrupts it, or with the exception if playback failed.
        """
        ...

    def stop(self) -> None:
        ...


class VoiceConnection(Protocol):
    channel_id: str
    guild_id: str
    self_id: str
    receiver: AudioReceiver
    player: AudioPlayer

    async def wait_until_ready(self, timeout: float) -> None:
        """Return once the connection is ready; raise asyncio.TimeoutError otherwise."""
        ...

    def on_disconnect(self, handler: Callable[[], Awaitable[None]]) -> None:
        ...

    def destroy(self) -> None:
        ...


class CallPlatform(Protocol):
    async def join_channel(self, guild_id: str, channel_id: str) -> VoiceConnection:
        ...

    def get_connection(self, guild_id: str) -> Optional[VoiceConnection]:
        ...


class ChatMessage(Protocol):
    """A text message as seen by the command router."""

    content: str
    author_is_bot: bool
    guild_id: Optional[str]
    author_voice_channel_id: Optional[str]

    async def reply(self, text: str) -> None:
        ...

    async def send(self, text: str) -> None:
        """Post to the message's channel without replying."""
        ...
