"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

UNKNOWN_SENDER = "unknown"


@dataclass(frozen=True)
class IncomingMessage:
    """Minimal inbound text message used by the dispatcher."""

    chat_id: str
    chat_title: Optional[str]
    sender_id: Optional[int]
    sender_username: Optional[str]
    sender_first_name: Optional[str]
    text: str
    date: datetime

    @property
    def sender_name(self) -> str:
        """Prefer the handle, then the first name."""

        return self.sender_username or self.sender_first_name or UNKNOWN_SENDER


@dataclass(frozen=True)
class Rule:
    """A moderation directive scoped to one group chat."""

    group_id: str
    criterion: str
    value: str = ""

    def key(self) -> tuple[str, str, str]:
        return (self.group_id, self.criterion, self.value)


@dataclass(frozen=True)
class RuleMatch:
    """A rule that fired for a message, with the reply it produces."""

    rule: Rule
    reply: str


@dataclass(frozen=True)
class LogEntry:
    """Recorded representation of one inbound text message."""

    date: datetime
    user: str
    user_id: Optional[int]
    chat_id: str
    chat_title: Optional[str]
    text: str


class StartStatus(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already-running"


class StopStatus(str, Enum):
    STOPPED = "stopped"
    NOT_RUNNING = "not-running"
