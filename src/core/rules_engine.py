"""Criterion registration and rule matching logic (core domain)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from core.models import IncomingMessage, Rule, RuleMatch

LOGGER = logging.getLogger(__name__)

STARTS_WITH_NUMBER = "startsWithNumber"
CONTAINS_CHECKMARK = "containsCheckmark"

CHECKMARK = "✅"

# (message text, rule value) -> matched
Predicate = Callable[[str, str], bool]

_LEADING_DIGIT = re.compile(r"^[0-9]")


@dataclass(frozen=True)
class Criterion:
    """A named match predicate and the reply it triggers."""

    tag: str
    predicate: Predicate
    reply: str


class CriteriaRegistry:
    """Mapping from criterion tag to its predicate and reply.

    New criteria are added by registering a tag; rules referring to a tag
    that is not registered are ignored at match time.
    """

    def __init__(self) -> None:
        self._criteria: Dict[str, Criterion] = {}

    def register(self, tag: str, predicate: Predicate, reply: str) -> Criterion:
        if not tag:
            raise ValueError("Criterion tag is required")
        if tag in self._criteria:
            raise ValueError(f"Criterion already registered: {tag}")
        criterion = Criterion(tag=tag, predicate=predicate, reply=reply)
        self._criteria[tag] = criterion
        return criterion

    def get(self, tag: str) -> Optional[Criterion]:
        return self._criteria.get(tag)

    def tags(self) -> List[str]:
        return list(self._criteria)

    def __contains__(self, tag: object) -> bool:
        return tag in self._criteria


def starts_with_number(text: str, value: str) -> bool:
    return bool(_LEADING_DIGIT.match(text))


def contains_checkmark(text: str, value: str) -> bool:
    return CHECKMARK in text


def build_default_criteria() -> CriteriaRegistry:
    """Return a registry holding the built-in criteria."""

    registry = CriteriaRegistry()
    registry.register(STARTS_WITH_NUMBER, starts_with_number, "Message starts with a number!")
    registry.register(CONTAINS_CHECKMARK, contains_checkmark, "Message contains a check mark!")
    return registry


def match_rules(
    message: IncomingMessage,
    rules: Iterable[Rule],
    criteria: CriteriaRegistry,
) -> List[RuleMatch]:
    """Return every rule match for the message, in rule order.

    Matching logic:
    - Only rules whose group_id equals the message chat id are considered.
    - Each rule is evaluated independently; there is no early exit and
      identical replies are not collapsed.
    - Rules with an unregistered criterion never match.
    """

    matches: List[RuleMatch] = []
    for rule in rules:
        if rule.group_id != message.chat_id:
            continue
        criterion = criteria.get(rule.criterion)
        if criterion is None:
            LOGGER.debug("Skipping rule with unknown criterion %s", rule.criterion)
            continue
        if criterion.predicate(message.text, rule.value):
            matches.append(RuleMatch(rule=rule, reply=criterion.reply))
    return matches
