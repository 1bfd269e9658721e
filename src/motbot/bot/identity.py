"""Decide whose name a lookup is logged under."""

from __future__ import annotations

from motbot.config import UsageAttribution
from motbot.models.events import ChatInfo, RegistrationQuery

UNKNOWN_LABEL = "unknown"


def group_chat_label(chat_id: int) -> str:
    return f"group_chat_{chat_id}"


def usage_identity(
    query: RegistrationQuery,
    chat: ChatInfo | None,
    attribution: UsageAttribution = UsageAttribution.CHAT,
) -> tuple[int, str]:
    """Return the ``(user_id, label)`` pair to log for *query*.

    *chat* is the result of resolving the chat's identity, or ``None`` when
    that lookup failed. Without it the chat id is logged as ``unknown``.
    """
    if attribution is UsageAttribution.SENDER and query.user_id is not None:
        return query.user_id, query.sender_label or UNKNOWN_LABEL

    if chat is None:
        return query.chat_id, UNKNOWN_LABEL
    if chat.is_private:
        return chat.id, chat.label or UNKNOWN_LABEL
    return query.chat_id, group_chat_label(query.chat_id)
