"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the dispatcher.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import IncomingMessage


def _chat_title(event: Any, chat: Any) -> Optional[str]:
    # Only group chats carry a title worth logging; private chats have none.
    if not (getattr(event, "is_group", False) or getattr(event, "is_channel", False)):
        return None
    title = getattr(chat, "title", None)
    return str(title) if title else None


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


async def build_incoming_message(event: Any) -> IncomingMessage:
    """Build a core IncomingMessage from a Telethon NewMessage event."""

    sender = await event.get_sender()
    chat = await event.get_chat()

    return IncomingMessage(
        # Marked ids (-100... for supergroups) are what rules are keyed on.
        chat_id=str(event.chat_id),
        chat_title=_chat_title(event, chat),
        sender_id=getattr(event, "sender_id", None),
        sender_username=_optional_str(getattr(sender, "username", None)),
        sender_first_name=_optional_str(getattr(sender, "first_name", None)),
        text=event.raw_text or "",
        date=event.message.date,
    )
