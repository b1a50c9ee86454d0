"""Exceptions raised by the botfly runtime."""

from __future__ import annotations


class BotflyError(Exception):
    """Base class for runtime errors surfaced to callers."""


class ConfigurationError(BotflyError):
    """A required setting (bot id, token) is missing or empty."""


class RuleValidationError(BotflyError):
    """A rule mutation request is missing its group id or criterion."""


class BotConnectionError(BotflyError):
    """The chat platform refused or failed to establish a bot connection."""

    def __init__(self, bot_id: str, reason: str) -> None:
        super().__init__(f"Failed to start bot {bot_id}: {reason}")
        self.bot_id = bot_id
        self.reason = reason


class BotNotRunningError(BotflyError):
    """An operation needs a live connection that the registry does not hold."""

    def __init__(self, bot_id: str) -> None:
        super().__init__(f"Bot {bot_id} is not running")
        self.bot_id = bot_id


class DeliveryError(BotflyError):
    """Sending a message through the Bot API failed."""
