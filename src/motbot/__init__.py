"""motbot - Telegram bot for UK MOT history and vehicle tax lookups."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("motbot")
except PackageNotFoundError:
    __version__ = "0+local"
from motbot.application import MotBot
from motbot.bot import (
    AccessPolicy,
    AggregationOrchestrator,
    DispatcherState,
    UpdateDispatcher,
    format_report,
    paginate,
    split_message,
)
from motbot.config import BotConfig, UsageAttribution
from motbot.exceptions import (
    AuthenticationError,
    ConfigError,
    FormatError,
    MotBotError,
    RateLimitError,
    RequestTimeoutError,
    SendError,
    TelegramApiError,
    TransportError,
    UpstreamFetchError,
    UsageLogError,
    VehicleNotFoundError,
)
from motbot.models import (
    ChatInfo,
    Defect,
    InboundEvent,
    MotTest,
    MotVehicle,
    RegistrationQuery,
    UsageEvent,
    UsageStats,
    VesVehicle,
)

__all__ = [
    "__version__",
    "AccessPolicy",
    "AggregationOrchestrator",
    "AuthenticationError",
    "BotConfig",
    "ChatInfo",
    "ConfigError",
    "Defect",
    "DispatcherState",
    "FormatError",
    "InboundEvent",
    "MotBot",
    "MotBotError",
    "MotTest",
    "MotVehicle",
    "RateLimitError",
    "RegistrationQuery",
    "RequestTimeoutError",
    "SendError",
    "TelegramApiError",
    "TransportError",
    "UpdateDispatcher",
    "UpstreamFetchError",
    "UsageAttribution",
    "UsageEvent",
    "UsageLogError",
    "UsageStats",
    "VehicleNotFoundError",
    "VesVehicle",
    "format_report",
    "paginate",
    "split_message",
]
