"""Ports (interfaces) used by the bot runtime.

Ports define the minimal contracts for chat-platform adapters so that the
registry and dispatcher can be reused with different client libraries.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from core.models import IncomingMessage


class ChatConnection(Protocol):
    """A live, signed-in connection for one bot."""

    bot_id: str

    async def reply(self, chat_id: str, text: str) -> None:
        ...

    async def stop(self) -> None:
        ...


MessageHandler = Callable[[IncomingMessage, ChatConnection], Awaitable[None]]


class ChatConnector(Protocol):
    """Factory for bot connections.

    ``connect`` must raise ``BotConnectionError`` when the platform rejects the
    token or cannot be reached, leaving nothing running.
    """

    async def connect(self, bot_id: str, token: str, handler: MessageHandler) -> ChatConnection:
        ...
