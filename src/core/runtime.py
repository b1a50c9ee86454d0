"""Bot runtime facade.

One ``BotRuntime`` is built at process start and handed to every caller (the
HTTP control API, the CLI). It owns the rule store, the log store, the
dispatcher and the registry, so tests can build a fresh runtime each time.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from core.config import DEFAULT_LOG_CAPACITY, BotConfig
from core.errors import BotNotRunningError, ConfigurationError
from core.log_store import LogStore
from core.models import LogEntry, Rule, StartStatus, StopStatus
from core.ports import ChatConnector
from core.processor import MessageDispatcher
from core.registry import BotRegistry
from core.rule_store import RuleStore
from core.rules_engine import CriteriaRegistry, build_default_criteria

LOGGER = logging.getLogger(__name__)


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{name} is required")
    return str(value).strip()


class BotRuntime:
    """Operations the surrounding application invokes on the bot core."""

    def __init__(
        self,
        connector: ChatConnector,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        criteria: Optional[CriteriaRegistry] = None,
    ) -> None:
        self.criteria_registry = criteria or build_default_criteria()
        self.rules = RuleStore()
        self.logs = LogStore(log_capacity)
        self.dispatcher = MessageDispatcher(self.rules, self.logs, self.criteria_registry)
        self.registry = BotRegistry(connector, self.dispatcher)

    async def start(self, bot_id: str, token: Optional[str]) -> StartStatus:
        # Missing credentials are rejected before the registry sees them.
        # Bot ids are keys shared with the stores, so they are checked, not rewritten.
        _require(bot_id, "bot_id")
        token = _require(token, "token")
        return await self.registry.start(bot_id, token)

    async def stop(self, bot_id: str) -> StopStatus:
        return await self.registry.stop(bot_id)

    def is_running(self, bot_id: str) -> bool:
        return self.registry.is_running(bot_id)

    def running_bots(self) -> List[str]:
        return self.registry.running_bots()

    def list_rules(self, bot_id: str) -> List[Rule]:
        return self.rules.list(bot_id)

    def add_rule(
        self,
        bot_id: str,
        group_id: Optional[str],
        criterion: Optional[str],
        value: Optional[str] = "",
    ) -> List[Rule]:
        rules = self.rules.add(bot_id, group_id, criterion, value)
        if criterion not in self.criteria_registry:
            LOGGER.warning("Rule for bot %s uses unregistered criterion %s", bot_id, criterion)
        return rules

    def remove_rule(
        self,
        bot_id: str,
        group_id: Optional[str],
        criterion: Optional[str],
        value: Optional[str] = "",
    ) -> List[Rule]:
        return self.rules.remove(bot_id, group_id, criterion, value)

    def get_logs(self, bot_id: str) -> Tuple[List[LogEntry], bool]:
        return self.logs.get_logs(bot_id)

    def set_logging_enabled(self, bot_id: str, enabled: bool) -> bool:
        enabled = self.logs.set_logging_enabled(bot_id, enabled)
        LOGGER.info("Logging for bot %s is now %s", bot_id, "on" if enabled else "off")
        return enabled

    def criteria(self) -> List[str]:
        return self.criteria_registry.tags()

    async def send_message(self, bot_id: str, chat_id: str, text: str) -> None:
        """Send ``text`` to ``chat_id`` through the bot's live connection."""

        chat_id = _require(chat_id, "chat_id")
        text = _require(text, "text")
        connection = self.registry.get(bot_id)
        if connection is None:
            raise BotNotRunningError(bot_id)
        await connection.reply(chat_id, text)

    def preload(self, bot: BotConfig) -> None:
        """Seed rules and the logging flag for a configured bot."""

        for rule in bot.rules:
            self.add_rule(bot.bot_id, rule.group_id, rule.criterion, rule.value)
        self.set_logging_enabled(bot.bot_id, bot.logging_enabled)

    async def shutdown(self) -> None:
        await self.registry.stop_all()
