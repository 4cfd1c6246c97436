"""
Models module for data structures and state in the voice relay.

Key components:
- audio: PCM format descriptors and the two canonical formats
  (CALL_FORMAT 48kHz stereo, REMOTE_FORMAT 16kHz mono).
- remote_schemas: Pydantic models for the conversational AI websocket
  protocol, with parse_remote_message() for inbound frames.
- registry: SessionRegistry, the channel id to session map owned by the
  command dispatcher.

Usage examples:
```python
from voice_relay.models.remote_schemas import parse_remote_message, PongMessage

message = parse_remote_message('{"type": "ping", "ping_event": {"event_id": 7}}')
pong = PongMessage(event_id=message.ping_event.event_id)
await ws.send(pong.model_dump_json())
```
"""

from voice_relay.models.audio import CALL_FORMAT, REMOTE_FORMAT, AudioFormat
from voice_relay.models.registry import SessionRegistry
from voice_relay.models.remote_schemas import (
    AgentResponseMessage,
    AudioMessage,
    ConversationInitiationMetadataMessage,
    InterruptionMessage,
    PingMessage,
    PongMessage,
    RemoteMessage,
    SignedUrlResponse,
    UserAudioChunkMessage,
    UserTranscriptMessage,
    parse_remote_message,
)
