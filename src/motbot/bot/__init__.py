"""Bot core.

Dispatching of inbound messages, the concurrent dual-source lookup, report
rendering, reply chunking and the admin policy.
"""

from motbot.bot.chunker import paginate, split_message
from motbot.bot.dispatcher import ChatTransport, DispatcherState, UpdateDispatcher
from motbot.bot.formatter import format_report
from motbot.bot.orchestrator import AggregationOrchestrator, VehicleDataSource
from motbot.bot.policy import AccessPolicy

__all__ = [
    "AccessPolicy",
    "AggregationOrchestrator",
    "ChatTransport",
    "DispatcherState",
    "UpdateDispatcher",
    "VehicleDataSource",
    "format_report",
    "paginate",
    "split_message",
]
