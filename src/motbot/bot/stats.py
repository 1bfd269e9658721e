"""Admin-only usage statistics command."""

from __future__ import annotations

from motbot._constants import ADMIN_ONLY_TEXT
from motbot.bot.policy import AccessPolicy
from motbot.models.events import InboundEvent
from motbot.models.usage import UsageStats
from motbot.usage.store import UsageRecorder


def format_stats(stats: UsageStats) -> str:
    return (
        "📊 *Bot Usage Statistics*\n\n"
        f"Last 24 hours: `{stats.last_day}` requests\n"
        f"Last 30 days: `{stats.last_month}` requests\n"
        f"All time: `{stats.all_time}` requests"
    )


async def stats_reply(event: InboundEvent, policy: AccessPolicy, recorder: UsageRecorder) -> str:
    """Reply text for ``/stats``.

    Callers outside the admin set get the fixed refusal and the recorder is
    not touched. Recorder failures propagate.
    """
    if not policy.allows(event.user_id, event.username):
        return ADMIN_ONLY_TEXT
    return format_stats(await recorder.stats())
