"""Update dispatcher: the bot's single event loop.

One consumer task pulls events from the transport and handles them strictly
in arrival order. The only place it suspends is the wait for "next event or
stop"; while an event is handled the stop signal is still watched so a
shutdown never waits for a slow lookup.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

from motbot._constants import (
    GENERIC_APOLOGY_TEXT,
    HELP_TEXT,
    LOOKUP_APOLOGY_TEXT,
    MAX_MESSAGE_LENGTH,
    WELCOME_TEXT,
)
from motbot.bot.chunker import paginate
from motbot.bot.orchestrator import AggregationOrchestrator
from motbot.bot.policy import AccessPolicy
from motbot.bot.stats import stats_reply
from motbot.exceptions import SendError, UpstreamFetchError
from motbot.models.events import ChatInfo, InboundEvent, RegistrationQuery
from motbot.usage.store import UsageRecorder

_logger = logging.getLogger(__name__)


async def _next_event(events: AsyncIterator[InboundEvent]) -> InboundEvent | None:
    try:
        return await anext(events)
    except StopAsyncIteration:
        return None


class ChatTransport(Protocol):
    """Messaging front end the dispatcher is driven by."""

    def receive(self) -> AsyncIterator[InboundEvent]:
        ...

    async def send(self, chat_id: int, text: str) -> None:
        ...

    async def resolve_identity(self, chat_id: int) -> ChatInfo:
        ...


class DispatcherState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class UpdateDispatcher:
    """Route inbound events to command handlers or the lookup path.

    Usage::

        stop = asyncio.Event()
        dispatcher = UpdateDispatcher(transport, orchestrator, policy, recorder)
        await dispatcher.run(stop)   # returns DispatcherState.STOPPED once stop is set
    """

    def __init__(
        self,
        transport: ChatTransport,
        orchestrator: AggregationOrchestrator,
        policy: AccessPolicy,
        recorder: UsageRecorder,
        *,
        max_message_length: int = MAX_MESSAGE_LENGTH,
    ) -> None:
        self._transport = transport
        self._orchestrator = orchestrator
        self._policy = policy
        self._recorder = recorder
        self._max_message_length = max_message_length
        self._state = DispatcherState.IDLE
        self._commands: dict[str, Callable[[InboundEvent], Awaitable[None]]] = {
            "start": self._handle_start,
            "help": self._handle_help,
            "stats": self._handle_stats,
        }

    @property
    def state(self) -> DispatcherState:
        return self._state

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    async def run(self, stop: asyncio.Event) -> DispatcherState:
        """Process events until *stop* is set, then return ``STOPPED``."""
        if self._state is not DispatcherState.IDLE:
            raise RuntimeError(f"Dispatcher cannot be started from state {self._state}")
        self._state = DispatcherState.RUNNING
        _logger.info("Dispatcher running")

        events = self._transport.receive()
        stop_task = asyncio.create_task(stop.wait(), name="dispatcher-stop")
        try:
            while True:
                next_event = asyncio.create_task(_next_event(events), name="dispatcher-receive")
                if not await self._wait_or_stop(next_event, stop_task):
                    break
                try:
                    event = next_event.result()
                except Exception:
                    _logger.exception("Update stream failed; waiting for shutdown")
                    await stop_task
                    break
                if event is None:
                    _logger.error("Update stream ended; waiting for shutdown")
                    await stop_task
                    break

                handler = asyncio.create_task(self.dispatch(event), name="dispatcher-handle")
                if not await self._wait_or_stop(handler, stop_task):
                    break
        finally:
            stop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_task
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                with contextlib.suppress(Exception):
                    await aclose()
            self._state = DispatcherState.STOPPED
            _logger.info("Dispatcher stopped")
        return self._state

    @staticmethod
    async def _wait_or_stop(task: asyncio.Future[Any], stop_task: asyncio.Task[Any]) -> bool:
        """Wait for *task* or the stop signal; cancel *task* if stop wins."""
        done, _ = await asyncio.wait({task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return True
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return False

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def dispatch(self, event: InboundEvent) -> None:
        """Handle one event. Never raises except on cancellation."""
        if event.is_command:
            await self._dispatch_command(event)
            return

        registration = event.text.strip()
        if not registration:
            _logger.debug("Ignoring message without text in chat %s", event.chat_id)
            return
        await self._handle_registration(event)

    async def _dispatch_command(self, event: InboundEvent) -> None:
        handler = self._commands.get(event.command)
        if handler is None:
            _logger.debug("Ignoring unknown command /%s", event.command)
            return
        try:
            await handler(event)
        except Exception:
            _logger.exception("Error handling /%s command", event.command)
            await self._apologise(event.chat_id, GENERIC_APOLOGY_TEXT)

    async def _handle_registration(self, event: InboundEvent) -> None:
        query = RegistrationQuery.from_event(event)
        try:
            report = await self._orchestrator.lookup(query)
            await self.reply(event.chat_id, report)
            return
        except UpstreamFetchError as exc:
            _logger.warning("Error handling registration %s: %s: %s", query.registration, exc, exc.__cause__)
        except SendError as exc:
            _logger.error("Error sending report for %s: %s", query.registration, exc)
        except Exception:
            _logger.exception("Error handling registration %s", query.registration)
        await self._apologise(event.chat_id, LOOKUP_APOLOGY_TEXT)

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------

    async def _handle_start(self, event: InboundEvent) -> None:
        await self.reply(event.chat_id, WELCOME_TEXT)

    async def _handle_help(self, event: InboundEvent) -> None:
        await self.reply(event.chat_id, HELP_TEXT)

    async def _handle_stats(self, event: InboundEvent) -> None:
        await self.reply(event.chat_id, await stats_reply(event, self._policy, self._recorder))

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def reply(self, chat_id: int, text: str) -> None:
        """Send *text*, split into parts if it exceeds the message limit."""
        messages = paginate(text, self._max_message_length)
        for part, message in enumerate(messages, start=1):
            try:
                await self._transport.send(chat_id, message)
            except SendError as exc:
                raise SendError(
                    f"failed to send message part {part}/{len(messages)}: {exc}",
                    chat_id=chat_id,
                    part=part,
                ) from exc

    async def _apologise(self, chat_id: int, text: str) -> None:
        try:
            await self.reply(chat_id, text)
        except Exception as exc:
            _logger.error("Error sending error message to chat %s: %s", chat_id, exc)
