"""Usage log layer.

Persists one record per lookup and answers the admin statistics query.
"""

from motbot.usage.store import RequestLog, SqlUsageRecorder, UsageRecorder

__all__ = ["RequestLog", "SqlUsageRecorder", "UsageRecorder"]
