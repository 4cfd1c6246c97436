"""
Session registry for active voice channels.

This module provides the SessionRegistry class which tracks the voice session
bound to each channel. The registry is owned by the command dispatcher and
handed to VoiceSession.start, so there is no ambient global session map.
A channel is reserved before the remote handshake begins, which makes two
concurrent starts on the same channel conflict instead of racing.
"""

from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from voice_relay.exceptions import SessionConflictError

if TYPE_CHECKING:
    from voice_relay.bot.session import VoiceSession


class SessionRegistry:
    """
    Maps channel ids to their voice session.

    A channel is either absent, reserved (a start is in progress, value None)
    or active (value is the running session).
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._sessions: Dict[str, Optional["VoiceSession"]] = {}

    def reserve(self, channel_id: str) -> None:
        """
        Claim a channel for a session that is about to start.

        Args:
            channel_id: Voice channel identifier

        Raises:
            SessionConflictError: if the channel is reserved or active
        """
        if channel_id in self._sessions:
            raise SessionConflictError(channel_id)
        self._sessions[channel_id] = None

    def activate(self, channel_id: str, session: "VoiceSession") -> None:
        """Attach a started session to its reserved channel."""
        self._sessions[channel_id] = session

    def release(self, channel_id: str, session: Optional["VoiceSession"] = None) -> None:
        """
        Free a channel.

        Args:
            channel_id: Voice channel identifier
            session: When given, only release if this session still owns the channel
        """
        if channel_id not in self._sessions:
            return
        if session is not None and self._sessions[channel_id] not in (None, session):
            return
        del self._sessions[channel_id]

    def get(self, channel_id: str) -> Optional["VoiceSession"]:
        """Return the active session on a channel, if any."""
        return self._sessions.get(channel_id)

    def for_guild(self, guild_id: str) -> List["VoiceSession"]:
        """Return all active sessions belonging to a guild."""
        return [s for s in self.active() if s.guild_id == guild_id]

    def active(self) -> List["VoiceSession"]:
        """Return every active (not merely reserved) session."""
        return [s for s in self._sessions.values() if s is not None]

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._sessions

    def __len__(self) -> int:
        return len(self.active())

    def __iter__(self) -> Iterator["VoiceSession"]:
        return iter(self.active())
