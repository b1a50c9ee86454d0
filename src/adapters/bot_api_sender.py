"""Telegram Bot API message sender.

Used for one-off messages (``botfly send``) where opening a full MTProto
session for the bot would be overkill.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from core.errors import DeliveryError


class TelegramBotApiSender:
    """Sends plain-text messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10) -> None:
        if not bot_token:
            raise ValueError("bot_token is required")
        self._bot_token = bot_token
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def send_message(self, chat_id: str, text: str) -> None:
        """Send ``text`` to ``chat_id`` (a user, group, or @channel)."""

        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DeliveryError(f"Bot API error {e.code}: {body}") from e
        except urllib.error.URLError as e:
            raise DeliveryError(f"Bot API unreachable: {e.reason}") from e
