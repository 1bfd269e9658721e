"""Wire configuration, clients, usage store and dispatcher into a running bot."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from motbot._api.mot import MotHistoryClient
from motbot._api.oauth import ClientCredentialsTokenProvider
from motbot._api.telegram import TelegramBotApi
from motbot._api.ves import VesClient
from motbot._transport import HttpTransport
from motbot.bot.dispatcher import DispatcherState, UpdateDispatcher
from motbot.bot.orchestrator import AggregationOrchestrator
from motbot.bot.policy import AccessPolicy
from motbot.config import BotConfig
from motbot.exceptions import MotBotError
from motbot.telegram import TelegramTransport
from motbot.usage.store import SqlUsageRecorder

_logger = logging.getLogger(__name__)


class MotBot:
    """The assembled bot.

    Usage::

        async with MotBot(config) as bot:
            await bot.run(stop_event)
    """

    def __init__(
        self,
        config: BotConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._recorder: SqlUsageRecorder | None = None
        self._dispatcher: UpdateDispatcher | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MotBot:
        config = self._config
        config.validate()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        http = HttpTransport(self._http_session)

        self._recorder = SqlUsageRecorder(config.database_url)
        try:
            await self._recorder.open()
        except Exception:
            await self.__aexit__(None, None, None)
            raise

        tokens = ClientCredentialsTokenProvider(
            http,
            token_url=config.mot_token_url,
            client_id=config.mot_client_id,
            client_secret=config.mot_client_secret,
            scope=config.mot_scope,
            timeout=config.mot_timeout,
        )
        mot = MotHistoryClient(
            http,
            tokens,
            api_key=config.mot_api_key,
            base_url=config.mot_base_url,
            timeout=config.mot_timeout,
        )
        ves = VesClient(
            http,
            api_key=config.ves_api_key,
            base_url=config.ves_base_url,
            timeout=config.ves_timeout,
        )
        transport = TelegramTransport(
            TelegramBotApi(http, config.telegram_token),
            poll_timeout=config.poll_timeout,
            parse_mode=config.parse_mode,
        )
        orchestrator = AggregationOrchestrator(
            mot,
            ves,
            self._recorder,
            transport,
            attribution=config.usage_attribution,
        )
        self._dispatcher = UpdateDispatcher(
            transport,
            orchestrator,
            AccessPolicy.from_entries(config.admin_list),
            self._recorder,
            max_message_length=config.max_message_length,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._recorder is not None:
            await self._recorder.close()
            self._recorder = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._dispatcher = None

    async def run(self, stop: asyncio.Event) -> DispatcherState:
        """Dispatch updates until *stop* is set."""
        if self._dispatcher is None:
            raise MotBotError("Bot not initialized. Use 'async with MotBot(...) as bot:'")
        _logger.info(
            "Starting bot (%d admin(s), usage attribution: %s)",
            len(self._config.admin_list),
            self._config.usage_attribution,
        )
        return await self._dispatcher.run(stop)
