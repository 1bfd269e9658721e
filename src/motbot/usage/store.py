"""Append-only request log backed by SQLite.

Every successful lookup is written as one ``request_logs`` row. Rows are
never updated or deleted; statistics are computed from them on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Protocol

from sqlalchemy import DateTime, Integer, String, Text, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from motbot.exceptions import UsageLogError
from motbot.models.usage import UsageEvent, UsageStats

_logger = logging.getLogger(__name__)

LAST_DAY = timedelta(hours=24)
LAST_MONTH = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _naive_utc(value: datetime) -> datetime:
    """SQLite has no timezone type; rows hold naive UTC datetimes."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class UsageRecorder(Protocol):
    """What the bot needs from a usage log."""

    async def append(self, user_id: int, username: str, registration: str, response: str) -> UsageEvent:
        ...

    async def stats(self) -> UsageStats:
        ...


class Base(DeclarativeBase):
    pass


class RequestLog(Base):
    __tablename__ = "request_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False)
    car_plate: Mapped[str] = mapped_column(String, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)


class SqlUsageRecorder:
    """Usage log on an async SQLAlchemy engine (``sqlite+aiosqlite`` by default).

    Usage::

        recorder = SqlUsageRecorder("sqlite+aiosqlite:///./data/requests.db")
        await recorder.open()
        await recorder.append(42, "alice", "AB12CDE", report)
        stats = await recorder.stats()
        await recorder.close()
    """

    def __init__(
        self,
        database_url: str,
        *,
        clock: Callable[[], datetime] = _utcnow,
        echo: bool = False,
    ) -> None:
        self._database_url = database_url
        self._clock = clock
        kwargs: dict[str, object] = {"echo": echo}
        if database_url.endswith(":memory:"):
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        self._engine: AsyncEngine = create_async_engine(database_url, **kwargs)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    async def open(self) -> None:
        """Create the database file's directory and the table if missing."""
        path = self._database_path()
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise UsageLogError(f"Failed to initialise usage store: {exc}") from exc
        _logger.debug("Usage store ready at %s", self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        await self._engine.dispose()

    async def append(self, user_id: int, username: str, registration: str, response: str) -> UsageEvent:
        """Insert one lookup row and return it as a :class:`UsageEvent`."""
        now = self._clock()
        row = RequestLog(
            timestamp=_naive_utc(now),
            user_id=user_id,
            username=username,
            car_plate=registration,
            response=response,
        )
        try:
            async with self._sessions() as session, session.begin():
                session.add(row)
        except SQLAlchemyError as exc:
            raise UsageLogError(f"Failed to log request: {exc}") from exc
        return UsageEvent(
            timestamp=now,
            user_id=user_id,
            username=username,
            registration=registration,
            response=response,
        )

    async def stats(self) -> UsageStats:
        """Count lookups in the last 24 hours, the last 30 days and overall."""
        now = _naive_utc(self._clock())
        try:
            async with self._sessions() as session:
                last_day = await session.scalar(
                    select(func.count()).select_from(RequestLog).where(RequestLog.timestamp >= now - LAST_DAY)
                )
                last_month = await session.scalar(
                    select(func.count()).select_from(RequestLog).where(RequestLog.timestamp >= now - LAST_MONTH)
                )
                all_time = await session.scalar(select(func.count()).select_from(RequestLog))
        except SQLAlchemyError as exc:
            raise UsageLogError(f"Failed to get stats: {exc}") from exc
        return UsageStats(
            last_day=last_day or 0,
            last_month=last_month or 0,
            all_time=all_time or 0,
        )

    def _database_path(self) -> Path | None:
        database = self._engine.url.database
        if not database or database == ":memory:":
            return None
        return Path(database)
