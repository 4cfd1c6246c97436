"""
Constants and configuration values used throughout the relay.

This module defines constants that are used across different parts of the package,
providing a centralized location for protocol names and audio format values.
"""

# Logger name used throughout the application
LOGGER_NAME = "voice_relay"

# Conversational AI endpoint
DEFAULT_API_BASE = "https://api.elevenlabs.io/v1/convai"
SIGNED_URL_PATH = "/conversation/get_signed_url"
CREDENTIAL_HEADER = "xi-api-key"
HANDSHAKE_TIMEOUT = 10  # seconds

# WebSocket configuration
CONNECTION_TIMEOUT = 30  # seconds
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
METADATA_GRACE_PERIOD = 5  # seconds to wait for the conversation id after connect

# PCM profiles, all 16-bit signed little-endian
SAMPLE_WIDTH = 2
CALL_SAMPLE_RATE = 48000
CALL_CHANNELS = 2
REMOTE_SAMPLE_RATE = 16000
REMOTE_CHANNELS = 1

# End of a speaking turn
DEFAULT_SILENCE_DURATION_MS = 500

# Command router
DEFAULT_WAKE_WORD = "larry"
VOICE_READY_TIMEOUT = 20  # seconds

# Inbound message kinds
MESSAGE_TYPE_CONVERSATION_METADATA = "conversation_initiation_metadata"
MESSAGE_TYPE_AUDIO = "audio"
MESSAGE_TYPE_AGENT_RESPONSE = "agent_response"
MESSAGE_TYPE_USER_TRANSCRIPT = "user_transcript"
MESSAGE_TYPE_INTERRUPTION = "interruption"
MESSAGE_TYPE_PING = "ping"
