"""
Run script for starting the Voice Relay status server.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from voice_relay.config.logging_config import configure_logging
from voice_relay.config.settings import load_settings
from voice_relay.exceptions import ConfigurationError


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Start the Voice Relay status server")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="Port to run the server on (default: 8000 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args()


def main():
    """Check configuration and start the server."""
    args = parse_args()
    logger = configure_logging(args.log_level)

    settings = load_settings()
    try:
        settings.require_credentials()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Agent: {settings.agent_id}, wake word: {settings.wake_word}")

    uvicorn.run(
        "voice_relay.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        http="h11",
        access_log=False,
    )


if __name__ == "__main__":
    main()
