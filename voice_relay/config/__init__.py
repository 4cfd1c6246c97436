"""
Configuration module for the voice relay.

This module provides centralized configuration management for the relay,
including constants, environment-driven settings and logging setup.

Key components:
- constants: Application-wide constants such as the logger name, the PCM
  sample rates and channel counts, remote message kinds and websocket limits.
- settings: Environment-based settings (credential, agent id, wake word)
  loaded into a pydantic model, optionally from a .env file.
- logging_config: Console and rotating file logging for the whole package.

Usage examples:
```python
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.models.audio import CALL_FORMAT, REMOTE_FORMAT
from voice_relay.config.settings import load_settings
from voice_relay.config.logging_config import configure_logging

logger = configure_logging()
settings = load_settings()
logger.info(f"Relaying to agent {settings.agent_id}")
```
"""
