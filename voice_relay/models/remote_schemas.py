"""
Pydantic models for the conversational AI websocket protocol.

This module defines structured data models for the JSON frames exchanged with
the remote agent: the inbound event kinds the relay reacts to, the outbound
audio and pong frames, and the signed URL handshake response.
"""

import base64
import json
from typing import Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from voice_relay.config.constants import (
    MESSAGE_TYPE_AGENT_RESPONSE,
    MESSAGE_TYPE_AUDIO,
    MESSAGE_TYPE_CONVERSATION_METADATA,
    MESSAGE_TYPE_INTERRUPTION,
    MESSAGE_TYPE_PING,
    MESSAGE_TYPE_USER_TRANSCRIPT,
)
from voice_relay.exceptions import MalformedMessageError


class RemoteBaseMessage(BaseModel):
    """Base model for inbound frames; unknown fields are tolerated."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., description="Message kind")


# Conversation metadata
class ConversationInitiationMetadataEvent(BaseModel):
    conversation_id: str
    agent_output_audio_format: Optional[str] = None
    user_input_audio_format: Optional[str] = None


class ConversationInitiationMetadataMessage(RemoteBaseMessage):
    """First frame after connect; carries the conversation id."""

    type: Literal["conversation_initiation_metadata"]
    conversation_initiation_metadata_event: ConversationInitiationMetadataEvent


# Audio
class AudioChunk(BaseModel):
    chunk: str = Field(..., description="Base64 PCM16LE 16kHz mono")


class AudioEvent(BaseModel):
    audio_base_64: str
    event_id: Optional[int] = None


class AudioMessage(RemoteBaseMessage):
    """Synthesized speech from the agent.

    The chunk is carried either under ``audio.chunk`` or under
    ``audio_event.audio_base_64`` depending on the API revision.
    """

    type: Literal["audio"]
    audio: Optional[AudioChunk] = None
    audio_event: Optional[AudioEvent] = None

    def pcm(self) -> Optional[bytes]:
        """Decoded PCM payload, or None when the frame carries no audio."""
        if self.audio is not None and self.audio.chunk:
            encoded = self.audio.chunk
        elif self.audio_event is not None and self.audio_event.audio_base_64:
            encoded = self.audio_event.audio_base_64
        else:
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except ValueError as e:
            raise MalformedMessageError(f"Invalid base64 audio chunk: {e}") from e


# Informational text
class AgentResponseEvent(BaseModel):
    agent_response: str


class AgentResponseMessage(RemoteBaseMessage):
    type: Literal["agent_response"]
    agent_response_event: AgentResponseEvent


class UserTranscriptionEvent(BaseModel):
    user_transcript: str


class UserTranscriptMessage(RemoteBaseMessage):
    type: Literal["user_transcript"]
    user_transcription_event: UserTranscriptionEvent


# Control
class InterruptionEvent(BaseModel):
    event_id: Optional[int] = None
    reason: Optional[str] = None


class InterruptionMessage(RemoteBaseMessage):
    """The agent's current speech must stop immediately."""

    type: Literal["interruption"]
    interruption_event: Optional[InterruptionEvent] = None


class PingEvent(BaseModel):
    event_id: Union[int, str]
    ping_ms: Optional[int] = None


class PingMessage(RemoteBaseMessage):
    """Keep-alive; must be answered with a pong echoing event_id."""

    type: Literal["ping"]
    ping_event: PingEvent


# Outbound
class UserAudioChunkMessage(BaseModel):
    """Captured user speech sent to the agent."""

    user_audio_chunk: str = Field(..., description="Base64 PCM16LE 16kHz mono")

    @classmethod
    def from_pcm(cls, pcm: bytes) -> "UserAudioChunkMessage":
        return cls(user_audio_chunk=base64.b64encode(pcm).decode("utf-8"))


class PongMessage(BaseModel):
    type: Literal["pong"] = "pong"
    event_id: Union[int, str]


# Handshake
class SignedUrlResponse(BaseModel):
    signed_url: str

    @field_validator("signed_url")
    def validate_signed_url(cls, v):
        """Validate that the URL targets a websocket endpoint."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError(f"signed_url is not a websocket URL: {v[:40]}")
        return v


RemoteMessage = Union[
    ConversationInitiationMetadataMessage,
    AudioMessage,
    AgentResponseMessage,
    UserTranscriptMessage,
    InterruptionMessage,
    PingMessage,
]

MESSAGE_MODELS: Dict[str, Type[RemoteBaseMessage]] = {
    MESSAGE_TYPE_CONVERSATION_METADATA: ConversationInitiationMetadataMessage,
    MESSAGE_TYPE_AUDIO: AudioMessage,
    MESSAGE_TYPE_AGENT_RESPONSE: AgentResponseMessage,
    MESSAGE_TYPE_USER_TRANSCRIPT: UserTranscriptMessage,
    MESSAGE_TYPE_INTERRUPTION: InterruptionMessage,
    MESSAGE_TYPE_PING: PingMessage,
}


def parse_remote_message(raw: Union[str, bytes]) -> Optional[RemoteMessage]:
    """
    Parse one inbound websocket frame.

    Args:
        raw: Text (or UTF-8 bytes) of the frame

    Returns:
        The typed message, or None for kinds the relay does not handle

    Raises:
        MalformedMessageError: if the frame is not valid JSON or fails validation
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedMessageError(f"Invalid JSON frame: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError(f"Expected a JSON object, got {type(data).__name__}")

    model = MESSAGE_MODELS.get(data.get("type"))
    if model is None:
        return None

    try:
        return model(**data)
    except ValidationError as e:
        raise MalformedMessageError(f"Invalid {data.get('type')} message: {e}") from e
