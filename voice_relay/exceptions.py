"""
Error taxonomy for the voice relay.

Errors raised while a session is starting abort the start and reach the
caller. Errors raised inside a running session (transcode, malformed inbound
message, player) are contained and logged by the component that owns the
failing cycle. Only transport loss tears a running session down.
"""

from typing import Optional


class VoiceRelayError(Exception):
    """Base class for all relay errors."""


class ConfigurationError(VoiceRelayError):
    """A required setting is missing or invalid."""


class HandshakeError(VoiceRelayError):
    """The credential exchange for a signed connection URL was rejected."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(VoiceRelayError):
    """The duplex connection could not be opened or dropped unexpectedly."""


class TranscodeError(VoiceRelayError):
    """A PCM conversion or opus decode stage failed."""


class MalformedMessageError(VoiceRelayError):
    """An inbound frame could not be parsed as a remote message."""


class SessionStartError(VoiceRelayError):
    """A voice session could not be started; the cause is chained."""


class SessionConflictError(VoiceRelayError):
    """A session is already active (or starting) on the channel."""

    def __init__(self, channel_id: str):
        super().__init__(f"A voice session is already active on channel {channel_id}")
        self.channel_id = channel_id
