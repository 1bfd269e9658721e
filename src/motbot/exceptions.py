"""Custom exception hierarchy for motbot."""

from __future__ import annotations


class MotBotError(Exception):
    """Base exception for all motbot errors."""


class ConfigError(MotBotError):
    """Invalid or missing configuration."""


class TransportError(MotBotError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class VehicleNotFoundError(TransportError):
    """The provider has no record for the requested registration (HTTP 404)."""


class RateLimitError(TransportError):
    """The provider throttled the request (HTTP 429)."""


class RequestTimeoutError(TransportError):
    """The request did not complete within its timeout."""


class TelegramApiError(TransportError):
    """Bot API answered with ``ok: false``.

    ``retry_after`` is set when Telegram asks the client to slow down
    (``parameters.retry_after`` in the error payload).
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: int | None = None,
        description: str = "",
        retry_after: float | None = None,
        endpoint: str = "",
    ) -> None:
        self.error_code = error_code
        self.description = description
        self.retry_after = retry_after
        super().__init__(message, status_code=error_code, endpoint=endpoint)

    @property
    def is_entity_parse_error(self) -> bool:
        """Whether Telegram rejected the message's Markdown/HTML markup."""
        return self.error_code == 400 and "can't parse entities" in self.description.lower()


class AuthenticationError(MotBotError):
    """OAuth token endpoint refused the client credentials."""


class UpstreamFetchError(MotBotError):
    """A vehicle data source failed for one lookup.

    ``source`` names the provider (``"MOT"`` or ``"VES"``); the underlying
    exception is chained as ``__cause__``.
    """

    def __init__(self, source: str, registration: str = "") -> None:
        self.source = source
        self.registration = registration
        super().__init__(f"{source} API error for {registration!r}")


class FormatError(MotBotError):
    """A well-formed record pair could not be rendered."""


class SendError(MotBotError):
    """Delivering a reply to a chat failed."""

    def __init__(self, message: str, *, chat_id: int, part: int = 1) -> None:
        self.chat_id = chat_id
        self.part = part
        super().__init__(message)


class UsageLogError(MotBotError):
    """Appending to or reading from the usage log failed."""
