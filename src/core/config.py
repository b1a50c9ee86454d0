"""Core configuration dataclasses.

We keep config parsing outside the runtime, but these dataclasses define the
shape the core expects so the app layer can build and preload bots safely.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List

DEFAULT_LOG_CAPACITY = 1000


@dataclass(frozen=True)
class RuleConfig:
    """A rule preloaded into the rule store at startup."""

    group_id: str
    criterion: str
    value: str = ""


@dataclass(frozen=True)
class BotConfig:
    """Startup settings for one bot.

    The token itself never lives in config.json; ``token_env`` names the
    environment variable that holds it.
    """

    bot_id: str
    token_env: str
    autostart: bool = True
    logging_enabled: bool = False
    rules: tuple[RuleConfig, ...] = field(default_factory=tuple)


def default_token_env(bot_id: str) -> str:
    """Return BOT_TOKEN_<BOT_ID> with non-word characters replaced."""

    return "BOT_TOKEN_" + re.sub(r"\W", "_", bot_id).upper()


def _build_rule(bot_id: str, raw_rule: dict) -> RuleConfig:
    group_id = str(raw_rule.get("group_id") or "").strip()
    criterion = str(raw_rule.get("criterion") or "").strip()
    if not group_id or not criterion:
        raise ValueError(f"Rule for bot {bot_id} needs group_id and criterion: {raw_rule}")
    return RuleConfig(group_id=group_id, criterion=criterion, value=str(raw_rule.get("value") or ""))


def build_bot_configs(raw_bots: Iterable[dict]) -> List[BotConfig]:
    """Normalize the ``bots`` section of config.json.

    Entries without a bot_id or with ``enabled: false`` are skipped, so a bot
    can be parked in the file without deleting its rules.
    """

    bots: List[BotConfig] = []
    for entry in raw_bots:
        bot_id = str(entry.get("bot_id") or "").strip()
        if not bot_id:
            continue
        if not entry.get("enabled", True):
            continue
        rules = tuple(_build_rule(bot_id, rule) for rule in entry.get("rules", []) or [])
        bots.append(
            BotConfig(
                bot_id=bot_id,
                token_env=entry.get("token_env") or default_token_env(bot_id),
                autostart=bool(entry.get("autostart", True)),
                logging_enabled=bool(entry.get("logging_enabled", False)),
                rules=rules,
            )
        )
    return bots
