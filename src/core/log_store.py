"""Per-bot bounded message logs with a runtime logging switch.

Logs live only in memory: each bot gets a deque capped at ``capacity`` so the
oldest entry is dropped once the buffer is full.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Tuple

from core.config import DEFAULT_LOG_CAPACITY
from core.models import LogEntry


class LogStore:
    """Circular per-bot log buffers plus the per-bot logging flag."""

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Log capacity must be at least 1")
        self.capacity = capacity
        self._entries: Dict[str, Deque[LogEntry]] = {}
        self._enabled: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def set_logging_enabled(self, bot_id: str, enabled: bool) -> bool:
        with self._lock:
            self._enabled[bot_id] = bool(enabled)
            return self._enabled[bot_id]

    def is_logging_enabled(self, bot_id: str) -> bool:
        with self._lock:
            return self._enabled.get(bot_id, False)

    def append(self, bot_id: str, entry: LogEntry) -> bool:
        """Append an entry if logging is enabled; return whether it was kept."""

        with self._lock:
            if not self._enabled.get(bot_id, False):
                return False
            buffer = self._entries.get(bot_id)
            if buffer is None:
                buffer = deque(maxlen=self.capacity)
                self._entries[bot_id] = buffer
            buffer.append(entry)
            return True

    def get_logs(self, bot_id: str) -> Tuple[List[LogEntry], bool]:
        """Return retained entries oldest first, plus the current flag."""

        with self._lock:
            entries = list(self._entries.get(bot_id, ()))
            return entries, self._enabled.get(bot_id, False)
