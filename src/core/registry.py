"""Bot connection registry.

Holds at most one live connection per bot id. Start and stop for the same id
are serialized with a per-id lock, and inbound messages for one bot are
dispatched one at a time while different bots run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from core.models import IncomingMessage, StartStatus, StopStatus
from core.ports import ChatConnection, ChatConnector, MessageHandler
from core.processor import MessageDispatcher

LOGGER = logging.getLogger(__name__)


class BotRegistry:
    """Maps bot ids to live connections and owns their lifecycle."""

    def __init__(self, connector: ChatConnector, dispatcher: MessageDispatcher) -> None:
        self._connector = connector
        self._dispatcher = dispatcher
        self._connections: Dict[str, ChatConnection] = {}
        # bot id -> (lock, callers holding or waiting on it)
        self._lifecycle_locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _lifecycle(self, bot_id: str) -> AsyncIterator[None]:
        lock, users = self._lifecycle_locks.get(bot_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._lifecycle_locks[bot_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._lifecycle_locks[bot_id]
            if users > 1:
                self._lifecycle_locks[bot_id] = (lock, users - 1)
            elif bot_id in self._connections:
                self._lifecycle_locks[bot_id] = (lock, 0)
            else:
                # Nothing running and nobody waiting: forget the id.
                del self._lifecycle_locks[bot_id]

    def _message_handler(self, bot_id: str) -> MessageHandler:
        dispatch_lock = asyncio.Lock()

        async def handle(message: IncomingMessage, connection: ChatConnection) -> None:
            async with dispatch_lock:
                try:
                    await self._dispatcher.handle(bot_id, message, connection)
                except Exception:
                    # No caller waits on this path; report and keep the connection alive.
                    LOGGER.exception("Error while dispatching message for bot %s", bot_id)

        return handle

    async def start(self, bot_id: str, token: str) -> StartStatus:
        """Connect ``bot_id`` unless it is already running.

        Connection errors propagate to the caller and nothing is registered.
        """

        async with self._lifecycle(bot_id):
            if bot_id in self._connections:
                LOGGER.info("Bot %s is already running", bot_id)
                return StartStatus.ALREADY_RUNNING
            connection = await self._connector.connect(bot_id, token, self._message_handler(bot_id))
            self._connections[bot_id] = connection
            LOGGER.info("Bot %s started", bot_id)
            return StartStatus.STARTED

    async def stop(self, bot_id: str) -> StopStatus:
        """Disconnect ``bot_id``; stopping an absent bot is not an error."""

        async with self._lifecycle(bot_id):
            connection = self._connections.pop(bot_id, None)
            if connection is None:
                return StopStatus.NOT_RUNNING
            try:
                await connection.stop()
            except Exception:
                LOGGER.exception("Error while disconnecting bot %s", bot_id)
            LOGGER.info("Bot %s stopped", bot_id)
            return StopStatus.STOPPED

    async def stop_all(self) -> None:
        for bot_id in self.running_bots():
            await self.stop(bot_id)

    def is_running(self, bot_id: str) -> bool:
        return bot_id in self._connections

    def running_bots(self) -> List[str]:
        return sorted(self._connections)

    def get(self, bot_id: str) -> Optional[ChatConnection]:
        return self._connections.get(bot_id)
