"""Command handlers package."""

from partyline.application.handlers.command_handler import (
    CommandHandler,
    parse_command,
)

__all__ = ["CommandHandler", "parse_command"]
