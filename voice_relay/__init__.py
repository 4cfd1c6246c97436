"""
Voice Relay - group voice call to conversational AI agent bridge

This package relays live audio between a voice channel and a remote
conversational AI agent in both directions. Participant speech is captured
per speaking turn, decoded from opus, resampled to 16kHz mono and sent to the
agent; agent speech is queued, resampled to 48kHz stereo and played into the
call, and is cut off immediately when the agent signals an interruption.

Key Components:
- audio: Stream stages (opus decode, PCM transcoding), the playback queue and
  the per-participant capture pipeline
- bot: The remote link to the agent and the VoiceSession that wires a call
  connection to it
- config: Constants, environment settings and logging setup
- handlers: Text command router (join / leave / status)
- models: Wire schemas, audio formats and the session registry
- platform: Protocols a chat platform adapter implements
- main: FastAPI status surface

Getting Started:
1. Set up environment variables:
   - ELEVENLABS_API_KEY: Credential for the conversational AI API
   - ELEVENLABS_AGENT_ID: Agent to talk to
   - BOT_WAKE_WORD: Word that addresses the bot in chat (default larry)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the status server:
   ```bash
   python run.py
   ```

3. Connect a chat platform adapter implementing voice_relay.platform and
   feed its messages to the router returned by voice_relay.main.create_router().
"""
