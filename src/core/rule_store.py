"""Per-bot ordered rule storage (in memory)."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from core.errors import RuleValidationError
from core.models import Rule


def _build_rule(group_id: Optional[str], criterion: Optional[str], value: Optional[str]) -> Rule:
    # Validation happens before the store is touched.
    if not group_id:
        raise RuleValidationError("group_id is required")
    if not criterion:
        raise RuleValidationError("criterion is required")
    return Rule(group_id=str(group_id), criterion=str(criterion), value=str(value or ""))


class RuleStore:
    """Insertion-ordered rule lists keyed by bot id.

    Duplicates are allowed on add; remove drops every rule with an equal
    (group_id, criterion, value) tuple.
    """

    def __init__(self) -> None:
        self._rules: Dict[str, List[Rule]] = {}
        self._lock = threading.Lock()

    def add(
        self,
        bot_id: str,
        group_id: Optional[str],
        criterion: Optional[str],
        value: Optional[str] = "",
    ) -> List[Rule]:
        rule = _build_rule(group_id, criterion, value)
        with self._lock:
            rules = self._rules.setdefault(bot_id, [])
            rules.append(rule)
            return list(rules)

    def remove(
        self,
        bot_id: str,
        group_id: Optional[str],
        criterion: Optional[str],
        value: Optional[str] = "",
    ) -> List[Rule]:
        target = _build_rule(group_id, criterion, value).key()
        with self._lock:
            rules = self._rules.get(bot_id)
            if not rules:
                return []
            remaining = [rule for rule in rules if rule.key() != target]
            self._rules[bot_id] = remaining
            return list(remaining)

    def list(self, bot_id: str) -> List[Rule]:
        with self._lock:
            return list(self._rules.get(bot_id, ()))
