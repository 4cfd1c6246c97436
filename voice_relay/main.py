"""
FastAPI status server for the voice relay.

The relay's audio work happens inside VoiceSession objects driven by a chat
platform adapter. This module exposes their state over HTTP for health
checks and operators, and builds the command router that shares the same
session registry.
"""

from fastapi import FastAPI

from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import load_settings
from voice_relay.handlers.command_handlers import CommandRouter
from voice_relay.models.registry import SessionRegistry
from voice_relay.platform import CallPlatform

# Configure logging
logger = configure_logging()

settings = load_settings()

# Sessions of every channel served by this process
registry = SessionRegistry()

# Create FastAPI application
app = FastAPI(
    title="Voice Relay",
    description="Bridge between group voice calls and a conversational AI agent",
    version="1.0.0",
)


def create_router(platform: CallPlatform) -> CommandRouter:
    """Build the chat command router for a platform adapter, sharing this process's registry."""
    return CommandRouter(platform, registry, settings)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information including whether credentials are configured
        and how many voice sessions are active.
    """
    return {
        "status": "healthy",
        "api_key_configured": bool(settings.api_key),
        "agent_configured": bool(settings.agent_id),
        "active_sessions": len(registry),
    }


@app.get("/sessions")
async def list_sessions():
    """Details of every active voice session."""
    return {"sessions": [session.describe() for session in registry]}


@app.get("/")
async def root():
    """Root endpoint to display basic information about the service."""
    return {
        "name": "Voice Relay",
        "description": "Bridge between group voice calls and a conversational AI agent",
        "version": "1.0.0",
        "endpoints": {
            "/health": "Health check endpoint",
            "/sessions": "Active voice sessions",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting status server on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, http="h11")
