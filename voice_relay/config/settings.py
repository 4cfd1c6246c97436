"""
Environment-based settings for the voice relay.

Values are read from the process environment. A .env file in the working
directory is loaded first when present, so local development works without
exporting variables by hand.
"""

import os
from pathlib import Path
from typing import Optional

import dotenv
from pydantic import BaseModel, Field

from voice_relay.config.constants import (
    DEFAULT_API_BASE,
    DEFAULT_SILENCE_DURATION_MS,
    DEFAULT_WAKE_WORD,
)
from voice_relay.exceptions import ConfigurationError


class RelaySettings(BaseModel):
    """Runtime settings for one relay process."""

    api_key: Optional[str] = Field(None, description="Credential for the conversational AI endpoint")
    agent_id: Optional[str] = Field(None, description="Remote agent identity")
    api_base: str = Field(DEFAULT_API_BASE, description="Base URL of the conversational AI API")
    wake_word: str = Field(DEFAULT_WAKE_WORD, description="Word that addresses the bot in chat")
    silence_duration_ms: int = Field(DEFAULT_SILENCE_DURATION_MS, gt=0)
    host: str = "0.0.0.0"
    port: int = 8000

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless both the credential and agent id are set."""
        missing = []
        if not self.api_key:
            missing.append("ELEVENLABS_API_KEY")
        if not self.agent_id:
            missing.append("ELEVENLABS_AGENT_ID")
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")


def load_settings(env_file: Optional[Path] = None) -> RelaySettings:
    """
    Build RelaySettings from the environment.

    Args:
        env_file: Optional .env path, defaults to ./.env

    Returns:
        RelaySettings: the loaded settings
    """
    env_path = env_file or Path(".") / ".env"
    if env_path.exists():
        dotenv.load_dotenv(env_path)

    return RelaySettings(
        api_key=os.getenv("ELEVENLABS_API_KEY"),
        agent_id=os.getenv("ELEVENLABS_AGENT_ID"),
        api_base=os.getenv("ELEVENLABS_API_BASE", DEFAULT_API_BASE),
        wake_word=os.getenv("BOT_WAKE_WORD", DEFAULT_WAKE_WORD).lower(),
        silence_duration_ms=int(os.getenv("SILENCE_DURATION_MS", str(DEFAULT_SILENCE_DURATION_MS))),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
