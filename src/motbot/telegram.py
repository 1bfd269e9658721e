"""Telegram long-poll transport.

Turns ``getUpdates`` into a continuous stream of :class:`InboundEvent`
objects and delivers replies through ``sendMessage``. Reconnect and backoff
live here; the dispatcher only ever sees events.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from motbot._api.telegram import TelegramBotApi
from motbot.exceptions import MotBotError, SendError, TelegramApiError
from motbot.models.events import ChatInfo, InboundEvent

_logger = logging.getLogger(__name__)

_BACKOFF_INITIAL_S = 1.0
_BACKOFF_MAX_S = 30.0


class TelegramTransport:
    """Chat transport backed by the Telegram Bot API."""

    def __init__(
        self,
        api: TelegramBotApi,
        *,
        poll_timeout: int = 60,
        parse_mode: str = "Markdown",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._poll_timeout = poll_timeout
        self._parse_mode = parse_mode
        self._sleep = sleep
        self._offset = 0

    async def receive(self) -> AsyncIterator[InboundEvent]:
        """Yield inbound message events forever.

        Polling errors are logged and retried with exponential backoff
        (or the server's ``retry_after``). Updates without a message are
        acknowledged and skipped.
        """
        backoff = _BACKOFF_INITIAL_S
        while True:
            try:
                updates = await self._api.get_updates(self._offset, poll_timeout=self._poll_timeout)
            except Exception as exc:
                delay = backoff
                if isinstance(exc, TelegramApiError) and exc.retry_after is not None:
                    delay = exc.retry_after
                _logger.warning(
                    "getUpdates failed (%s); retrying in %.0fs",
                    exc,
                    delay,
                    exc_info=not isinstance(exc, MotBotError),
                )
                await self._sleep(delay)
                backoff = min(backoff * 2, _BACKOFF_MAX_S)
                continue

            backoff = _BACKOFF_INITIAL_S
            for update in updates:
                self._offset = max(self._offset, update.update_id + 1)
                if update.message is None:
                    continue
                yield InboundEvent.from_message(update.message)

    async def send(self, chat_id: int, text: str) -> None:
        """Deliver one message.

        If Telegram cannot parse the Markdown, the same text is re-sent once
        without a parse mode.
        """
        try:
            await self._api.send_message(chat_id, text, parse_mode=self._parse_mode)
            return
        except TelegramApiError as exc:
            if not (self._parse_mode and exc.is_entity_parse_error):
                raise SendError(f"sendMessage to {chat_id} failed: {exc}", chat_id=chat_id) from exc
            _logger.warning("Markdown rejected for chat %s, resending as plain text", chat_id)
        except MotBotError as exc:
            raise SendError(f"sendMessage to {chat_id} failed: {exc}", chat_id=chat_id) from exc

        try:
            await self._api.send_message(chat_id, text)
        except MotBotError as exc:
            raise SendError(f"sendMessage to {chat_id} failed: {exc}", chat_id=chat_id) from exc

    async def resolve_identity(self, chat_id: int) -> ChatInfo:
        chat = await self._api.get_chat(chat_id)
        return ChatInfo.from_chat(chat)
