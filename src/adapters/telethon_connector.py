"""Telethon implementation of the chat connector port.

Each bot gets its own TelegramClient signed in with the bot token. Telethon
pushes updates on the running event loop; we only register a single
NewMessage handler and hand everything else to the core.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from telethon import errors, events

from adapters.telegram_mapper import build_incoming_message
from core.errors import BotConnectionError, DeliveryError
from core.ports import MessageHandler

LOGGER = logging.getLogger(__name__)


def resolve_peer(chat_id: str) -> "int | str":
    """Return a numeric id as int; keep @usernames and links as strings."""

    value = str(chat_id).strip()
    if value.lstrip("-").isdigit():
        return int(value)
    return value


class TelethonConnection:
    """A signed-in bot client satisfying the ChatConnection port."""

    def __init__(self, bot_id: str, client: Any) -> None:
        self.bot_id = bot_id
        self._client = client

    async def reply(self, chat_id: str, text: str) -> None:
        try:
            await self._client.send_message(resolve_peer(chat_id), text)
        except (errors.RPCError, ValueError) as exc:
            # ValueError: Telethon cannot resolve a peer the session has never seen.
            raise DeliveryError(f"Telegram rejected message to {chat_id}: {exc}") from exc

    async def stop(self) -> None:
        await self._client.disconnect()


class TelethonConnector:
    """Creates bot connections from tokens."""

    def __init__(self, client_factory: Callable[[], Any]) -> None:
        self._client_factory = client_factory

    async def connect(self, bot_id: str, token: str, handler: MessageHandler) -> TelethonConnection:
        client = self._client_factory()
        try:
            await client.start(bot_token=token)
        except (errors.RPCError, ConnectionError, OSError, ValueError) as exc:
            # Leave nothing half-open behind a failed sign-in.
            await client.disconnect()
            raise BotConnectionError(bot_id, str(exc) or type(exc).__name__) from exc

        connection = TelethonConnection(bot_id, client)

        async def on_new_message(event) -> None:
            # Media without text never reaches the dispatcher.
            if not event.raw_text:
                return
            try:
                message = await build_incoming_message(event)
            except Exception:
                LOGGER.exception("Could not map incoming message for bot %s", bot_id)
                return
            await handler(message, connection)

        client.add_event_handler(on_new_message, events.NewMessage(incoming=True))
        LOGGER.info("Bot %s signed in, listening for incoming messages", bot_id)
        return connection
