"""Telegram Bot API methods.

Methods:
  - getUpdates
  - sendMessage
  - getChat
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from motbot._constants import TELEGRAM_API_URL
from motbot._transport import Transport
from motbot.exceptions import TelegramApiError
from motbot.models.telegram import TelegramChat, TelegramMessage, TelegramUpdate

_logger = logging.getLogger(__name__)


class TelegramBotApi:
    """Thin wrapper over the Bot API's JSON methods."""

    def __init__(
        self,
        transport: Transport,
        token: str,
        *,
        base_url: str = TELEGRAM_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self._transport = transport
        self._url = f"{base_url.rstrip('/')}/bot{token}"
        self._timeout = timeout

    async def call(self, method: str, payload: dict[str, Any], *, timeout: float | None = None) -> Any:
        """Invoke *method* and return its ``result``.

        Raises :class:`TelegramApiError` when the API answers ``ok: false``.
        """
        response = await self._transport.request_json(
            "POST",
            f"{self._url}/{method}",
            endpoint=method,
            json_body=payload,
            timeout=timeout if timeout is not None else self._timeout,
            check_status=False,
        )
        if not isinstance(response, dict):
            raise TelegramApiError(f"{method} returned a non-object body", endpoint=method)
        if not response.get("ok"):
            description = str(response.get("description", ""))
            parameters = response.get("parameters")
            retry_after = parameters.get("retry_after") if isinstance(parameters, dict) else None
            error_code = response.get("error_code")
            raise TelegramApiError(
                f"{method} failed: {error_code} {description}",
                error_code=int(error_code) if isinstance(error_code, int) else None,
                description=description,
                retry_after=float(retry_after) if isinstance(retry_after, (int, float)) else None,
                endpoint=method,
            )
        return response.get("result")

    async def get_updates(self, offset: int, *, poll_timeout: int) -> list[TelegramUpdate]:
        result = await self.call(
            "getUpdates",
            {"offset": offset, "timeout": poll_timeout, "allowed_updates": ["message"]},
            timeout=poll_timeout + 10,
        )
        if not isinstance(result, list):
            return []
        updates: list[TelegramUpdate] = []
        for item in result:
            try:
                updates.append(TelegramUpdate.model_validate(item))
            except ValidationError:
                update_id = item.get("update_id") if isinstance(item, dict) else None
                if not isinstance(update_id, int):
                    raise
                _logger.warning("Skipping malformed update %s", update_id)
                updates.append(TelegramUpdate(update_id=update_id))
        return updates

    async def send_message(self, chat_id: int, text: str, *, parse_mode: str = "") -> TelegramMessage:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        result = await self.call("sendMessage", payload)
        return TelegramMessage.model_validate(result)

    async def get_chat(self, chat_id: int) -> TelegramChat:
        result = await self.call("getChat", {"chat_id": chat_id})
        return TelegramChat.model_validate(result)
