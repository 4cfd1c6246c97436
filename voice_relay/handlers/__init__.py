"""
Handlers module for chat commands.

- command_handlers: CommandRouter, which maps wake-word messages to joining
  voice and starting a session, leaving voice, and reporting status.
"""

from voice_relay.handlers.command_handlers import GREETING, CommandRouter

__all__ = ["CommandRouter", "GREETING"]
