"""
Bot module connecting a voice channel to the conversational AI agent.

Key components:
- RemoteLink: Websocket client for the agent. Performs the signed URL
  handshake, forwards user audio, answers keep-alive pings, feeds agent audio
  into the playback queue and flushes it on interruption.
- VoiceSession: Aggregate owning one RemoteLink, one PlaybackQueue and the
  capture pipelines of a channel, with start/stop/status for the dispatcher.

Usage examples:
```python
from voice_relay.bot import VoiceSession
from voice_relay.config.settings import load_settings
from voice_relay.models.registry import SessionRegistry

registry = SessionRegistry()
session = await VoiceSession.start(connection, registry, load_settings())
print(session.status())
await session.stop()
```
"""

from voice_relay.bot.remote_link import LinkState, RemoteLink
from voice_relay.bot.session import SessionStatus, VoiceSession

__all__ = ["LinkState", "RemoteLink", "SessionStatus", "VoiceSession"]
