"""Concurrent dual-source lookup.

Both data sources are queried at the same time for every registration.
The first failure wins: it is raised immediately as an
:class:`UpstreamFetchError` and the fetch still in flight is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from motbot._constants import MOT_SOURCE, VES_SOURCE
from motbot.bot.formatter import format_report
from motbot.bot.identity import usage_identity
from motbot.config import UsageAttribution
from motbot.exceptions import UpstreamFetchError
from motbot.models.events import ChatInfo, RegistrationQuery
from motbot.models.mot import MotVehicle
from motbot.models.ves import VesVehicle
from motbot.usage.store import UsageRecorder

_logger = logging.getLogger(__name__)

RecordT_co = TypeVar("RecordT_co", covariant=True)

# Tie-break when both fetches finish in the same loop iteration.
_SOURCE_ORDER = {MOT_SOURCE: 0, VES_SOURCE: 1}


class VehicleDataSource(Protocol[RecordT_co]):
    """Fetch one provider's vehicle record by registration."""

    async def fetch(self, registration: str) -> RecordT_co:
        ...


class IdentityResolver(Protocol):
    async def resolve_identity(self, chat_id: int) -> ChatInfo:
        ...


async def _cancel_and_reap(tasks: set[asyncio.Task[Any]]) -> None:
    """Cancel *tasks* and wait for them so none outlives the lookup.

    Finished tasks are unaffected by the cancel; gathering them retrieves
    any exception they hold.
    """
    if not tasks:
        return
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class AggregationOrchestrator:
    """Run both fetches for a query and turn them into one report."""

    def __init__(
        self,
        mot_source: VehicleDataSource[MotVehicle],
        ves_source: VehicleDataSource[VesVehicle],
        recorder: UsageRecorder,
        identity_resolver: IdentityResolver,
        *,
        attribution: UsageAttribution = UsageAttribution.CHAT,
        formatter: Callable[[MotVehicle, VesVehicle], str] = format_report,
    ) -> None:
        self._mot = mot_source
        self._ves = ves_source
        self._recorder = recorder
        self._identity = identity_resolver
        self._attribution = attribution
        self._formatter = formatter

    async def lookup(self, query: RegistrationQuery) -> str:
        """Return the combined report for *query*.

        Raises :class:`UpstreamFetchError` (source-tagged, cause chained) as
        soon as either source fails. The usage log is written after a
        successful render; failures to log are reported and ignored.
        """
        mot, ves = await self._fetch_both(query.registration)
        report = self._formatter(mot, ves)
        await self._record(query, report)
        return report

    async def _fetch_both(self, registration: str) -> tuple[MotVehicle, VesVehicle]:
        sources: dict[asyncio.Task[Any], str] = {
            asyncio.create_task(self._mot.fetch(registration), name=f"fetch-{MOT_SOURCE}"): MOT_SOURCE,
            asyncio.create_task(self._ves.fetch(registration), name=f"fetch-{VES_SOURCE}"): VES_SOURCE,
        }
        results: dict[str, Any] = {}
        pending: set[asyncio.Task[Any]] = set(sources)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: _SOURCE_ORDER[sources[t]]):
                    source = sources[task]
                    exc = task.exception()
                    if exc is not None:
                        raise UpstreamFetchError(source, registration) from exc
                    results[source] = task.result()
                    _logger.debug("%s record for %s received", source, registration)
        finally:
            await _cancel_and_reap(set(sources))
        return results[MOT_SOURCE], results[VES_SOURCE]

    async def _record(self, query: RegistrationQuery, report: str) -> None:
        chat: ChatInfo | None = None
        if self._attribution is UsageAttribution.CHAT or query.user_id is None:
            try:
                chat = await self._identity.resolve_identity(query.chat_id)
            except Exception as exc:
                _logger.warning("Could not resolve identity for chat %s: %s", query.chat_id, exc)

        user_id, label = usage_identity(query, chat, self._attribution)
        try:
            await self._recorder.append(user_id, label, query.registration, report)
        except Exception:
            _logger.exception("Failed to log request for %s", query.registration)
