"""Helpers for safe debug logging.

motbot handles API keys, OAuth secrets and the bot token, and it receives
full vehicle reports that do not belong in DEBUG output. This module redacts
sensitive fields and shortens long strings before they are logged.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "x-api-key",
        "api_key",
        "apikey",
        "authorization",
        "access_token",
        "client_secret",
        "client_id",
        "token",
        "password",
        "cookie",
    }
)

_BOT_TOKEN_IN_URL = re.compile(r"/bot[^/]+/")


def redact_url(url: str) -> str:
    """Hide the bot token embedded in Bot API URLs."""
    return _BOT_TOKEN_IN_URL.sub("/bot<redacted>/", url)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                redacted[key] = "<redacted>"
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
