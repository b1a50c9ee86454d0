from __future__ import annotations

import pytest

from core.config import BotConfig, RuleConfig, build_bot_configs, default_token_env


def test_build_bot_configs_defaults() -> None:
    bots = build_bot_configs([{"bot_id": "support-bot"}])
    assert bots == [
        BotConfig(
            bot_id="support-bot",
            token_env="BOT_TOKEN_SUPPORT_BOT",
            autostart=True,
            logging_enabled=False,
            rules=(),
        )
    ]


def test_build_bot_configs_skips_disabled_and_nameless() -> None:
    bots = build_bot_configs(
        [
            {"bot_id": "on"},
            {"bot_id": "off", "enabled": False},
            {"token_env": "X"},
        ]
    )
    assert [bot.bot_id for bot in bots] == ["on"]


def test_build_bot_configs_rules() -> None:
    bots = build_bot_configs(
        [
            {
                "bot_id": "b1",
                "token_env": "MY_TOKEN",
                "logging_enabled": True,
                "autostart": False,
                "rules": [
                    {"group_id": -100123, "criterion": "startsWithNumber"},
                    {"group_id": "g2", "criterion": "containsCheckmark", "value": "x"},
                ],
            }
        ]
    )
    bot = bots[0]
    assert bot.token_env == "MY_TOKEN"
    assert bot.logging_enabled is True
    assert bot.autostart is False
    assert bot.rules == (
        RuleConfig("-100123", "startsWithNumber", ""),
        RuleConfig("g2", "containsCheckmark", "x"),
    )


def test_incomplete_rule_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_bot_configs([{"bot_id": "b1", "rules": [{"group_id": "g1"}]}])


def test_default_token_env() -> None:
    assert default_token_env("b1") == "BOT_TOKEN_B1"
