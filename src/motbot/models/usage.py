"""Usage log models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UsageEvent(BaseModel):
    """One logged lookup.

    Parameters
    ----------
    timestamp : datetime
        UTC time the lookup was logged.
    user_id : int
        Telegram user or chat id the lookup is attributed to.
    username : str
        Handle, display name or synthetic label (e.g. ``group_chat_-100``).
    registration : str
        Registration exactly as queried.
    response : str
        Report text that was sent back.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    user_id: int
    username: str
    registration: str
    response: str


class UsageStats(BaseModel):
    """Rolling lookup counts, recomputed on every request."""

    model_config = ConfigDict(frozen=True)

    last_day: int = 0
    last_month: int = 0
    all_time: int = 0
