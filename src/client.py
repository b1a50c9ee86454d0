"""Telegram client factory for botfly.

Bots sign in with their token on every start, so sessions are kept in memory
and nothing is written next to the project. Telethon still needs the
application's API_ID/API_HASH to open an MTProto connection.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from dotenv import load_dotenv
from telethon import TelegramClient
from telethon.sessions import StringSession


def load_api_credentials() -> tuple[int, str]:
    """Read API_ID/API_HASH via python-dotenv to keep secrets out of the repo."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")

    # Fail fast on missing credentials instead of failing on the first bot start.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    return int(api_id), api_hash


def build_client_factory() -> Callable[[], TelegramClient]:
    """Return a factory creating one fresh Telethon client per bot."""

    api_id, api_hash = load_api_credentials()
    logging.getLogger(__name__).info("Telegram API credentials loaded")

    def factory() -> TelegramClient:
        return TelegramClient(StringSession(), api_id, api_hash)

    return factory
