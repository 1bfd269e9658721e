"""Bot configuration for motbot."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from motbot._constants import (
    MAX_MESSAGE_LENGTH,
    MOT_BASE_URL,
    MOT_SCOPE,
    MOT_TOKEN_URL,
    VES_BASE_URL,
)
from motbot.exceptions import ConfigError


class UsageAttribution(StrEnum):
    """Who a lookup is attributed to in the usage log.

    ``CHAT`` logs private chats under the chat's own identity and group
    chats under a synthetic ``group_chat_<id>`` label.  ``SENDER`` always
    logs the user who sent the registration.
    """

    CHAT = "chat"
    SENDER = "sender"


def _split_admins(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(value.split())


@dataclasses.dataclass(frozen=True)
class BotConfig:
    """Bot configuration.

    Parameters
    ----------
    telegram_token : str
        Bot API token issued by BotFather.
    mot_api_key : str
        DVSA MOT History API key (``X-API-Key``).
    mot_client_id : str
        OAuth2 client id for the MOT History API.
    mot_client_secret : str
        OAuth2 client secret for the MOT History API.
    ves_api_key : str
        DVLA Vehicle Enquiry Service API key.
    mot_token_url : str
        OAuth2 token endpoint.
    mot_base_url : str
        MOT History vehicles endpoint.
    mot_scope : str
        OAuth2 scope requested for MOT History tokens.
    ves_base_url : str
        Vehicle Enquiry Service endpoint.
    sqlite_db_path : str
        Location of the request log database.
    admin_list : tuple of str
        Numeric Telegram user ids and/or ``@handles`` allowed to use
        ``/stats``.
    usage_attribution : UsageAttribution
        How lookups are attributed in the usage log.
    mot_timeout : float
        Seconds before a MOT History request is abandoned.
    ves_timeout : float
        Seconds before a Vehicle Enquiry request is abandoned.
    poll_timeout : int
        ``getUpdates`` long-poll timeout in seconds.
    max_message_length : int
        Maximum characters per outgoing Telegram message.
    parse_mode : str
        Telegram parse mode for replies (empty string for plain text).
    """

    telegram_token: str
    mot_api_key: str
    mot_client_id: str
    mot_client_secret: str
    ves_api_key: str
    mot_token_url: str = MOT_TOKEN_URL
    mot_base_url: str = MOT_BASE_URL
    mot_scope: str = MOT_SCOPE
    ves_base_url: str = VES_BASE_URL
    sqlite_db_path: str = "./data/requests.db"
    admin_list: tuple[str, ...] = ()
    usage_attribution: UsageAttribution = UsageAttribution.CHAT
    mot_timeout: float = 30.0
    ves_timeout: float = 10.0
    poll_timeout: int = 60
    max_message_length: int = MAX_MESSAGE_LENGTH
    parse_mode: str = "Markdown"

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the usage store."""
        if self.sqlite_db_path == ":memory:":
            return "sqlite+aiosqlite:///:memory:"
        return f"sqlite+aiosqlite:///{self.sqlite_db_path}"

    def validate(self) -> None:
        """Raise :class:`ConfigError` if a required setting is missing or invalid."""
        required = {
            "TELEGRAM_BOT_TOKEN": self.telegram_token,
            "MOT_API_KEY": self.mot_api_key,
            "MOT_CLIENT_ID": self.mot_client_id,
            "MOT_CLIENT_SECRET": self.mot_client_secret,
            "MOT_TOKEN_URL": self.mot_token_url,
            "VES_API_KEY": self.ves_api_key,
            "VES_API_BASE_URL": self.ves_base_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
        if self.max_message_length < 64:
            raise ConfigError(f"max_message_length must be at least 64, got {self.max_message_length}")
        if self.mot_timeout <= 0 or self.ves_timeout <= 0:
            raise ConfigError("Upstream timeouts must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> BotConfig:
        """Create configuration from environment variables.

        Reads ``TELEGRAM_BOT_TOKEN``, the ``MOT_*`` and ``VES_*`` credentials,
        and the optional tuning variables. Explicit keyword arguments override
        environment values. Missing credentials are left empty; call
        :meth:`validate` before starting the bot.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BotConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TELEGRAM_BOT_TOKEN": "telegram_token",
            "MOT_API_KEY": "mot_api_key",
            "MOT_CLIENT_ID": "mot_client_id",
            "MOT_CLIENT_SECRET": "mot_client_secret",
            "MOT_TOKEN_URL": "mot_token_url",
            "MOT_API_BASE_URL": "mot_base_url",
            "MOT_SCOPE": "mot_scope",
            "VES_API_KEY": "ves_api_key",
            "VES_API_BASE_URL": "ves_base_url",
            "SQLITE_DB_PATH": "sqlite_db_path",
            "PARSE_MODE": "parse_mode",
        }
        config_kwargs: dict[str, Any] = {
            "telegram_token": "",
            "mot_api_key": "",
            "mot_client_id": "",
            "mot_client_secret": "",
            "ves_api_key": "",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        admins = env.get("ADMIN_LIST")
        if admins is not None and "admin_list" not in overrides:
            config_kwargs["admin_list"] = _split_admins(admins)

        attribution = env.get("USAGE_ATTRIBUTION")
        if attribution is not None and "usage_attribution" not in overrides:
            try:
                config_kwargs["usage_attribution"] = UsageAttribution(attribution.strip().lower())
            except ValueError as exc:
                raise ConfigError(f"USAGE_ATTRIBUTION must be 'chat' or 'sender', got {attribution!r}") from exc

        # numeric settings, handle separately
        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "MOT_TIMEOUT": ("mot_timeout", float),
            "VES_TIMEOUT": ("ves_timeout", float),
            "POLL_TIMEOUT": ("poll_timeout", int),
            "MAX_MESSAGE_LENGTH": ("max_message_length", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        if isinstance(overrides.get("admin_list"), str):
            overrides["admin_list"] = _split_admins(overrides["admin_list"])

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
