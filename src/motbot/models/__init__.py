"""Data models for provider, Bot API and usage-log payloads."""

from motbot.models._base import ApiBaseModel
from motbot.models.events import ChatInfo, InboundEvent, RegistrationQuery, display_name
from motbot.models.mot import Defect, MotTest, MotVehicle
from motbot.models.telegram import (
    MessageEntity,
    TelegramChat,
    TelegramMessage,
    TelegramUpdate,
    TelegramUser,
)
from motbot.models.token import AccessToken
from motbot.models.usage import UsageEvent, UsageStats
from motbot.models.ves import VesVehicle

__all__ = [
    "AccessToken",
    "ApiBaseModel",
    "ChatInfo",
    "Defect",
    "InboundEvent",
    "MessageEntity",
    "MotTest",
    "MotVehicle",
    "RegistrationQuery",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
    "UsageEvent",
    "UsageStats",
    "VesVehicle",
    "display_name",
]
