"""Core message dispatch.

This module is integration-agnostic. It only relies on the connection port
for replies, enabling other chat platforms without changes here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from core.log_store import LogStore
from core.models import IncomingMessage, LogEntry, RuleMatch
from core.ports import ChatConnection
from core.rule_store import RuleStore
from core.rules_engine import CriteriaRegistry, match_rules

LOGGER = logging.getLogger(__name__)


class MessageDispatcher:
    """Logs inbound messages and fires moderation replies."""

    def __init__(self, rules: RuleStore, logs: LogStore, criteria: CriteriaRegistry) -> None:
        self._rules = rules
        self._logs = logs
        self._criteria = criteria

    async def handle(
        self,
        bot_id: str,
        message: IncomingMessage,
        connection: ChatConnection,
    ) -> List[RuleMatch]:
        """Process one inbound text message for ``bot_id``."""

        # Logging and matching are independent; neither short-circuits the other.
        if self._logs.is_logging_enabled(bot_id):
            self._logs.append(
                bot_id,
                LogEntry(
                    date=datetime.now(timezone.utc),
                    user=message.sender_name,
                    user_id=message.sender_id,
                    chat_id=message.chat_id,
                    chat_title=message.chat_title,
                    text=message.text,
                ),
            )

        matches = match_rules(message, self._rules.list(bot_id), self._criteria)
        for match in matches:
            try:
                await connection.reply(message.chat_id, match.reply)
            except Exception:
                LOGGER.exception(
                    "Reply failed for bot %s in chat %s (%s)",
                    bot_id,
                    message.chat_id,
                    match.rule.criterion,
                )
                continue
            LOGGER.info("Rule %s fired for bot %s in chat %s", match.rule.criterion, bot_id, message.chat_id)
        return matches
