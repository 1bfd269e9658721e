"""JSON-over-HTTP transport shared by the provider and Bot API clients."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from motbot._constants import USER_AGENT
from motbot._redact import redact_for_log, redact_url
from motbot.exceptions import (
    RateLimitError,
    RequestTimeoutError,
    TransportError,
    VehicleNotFoundError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the API client modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        endpoint: str = "",
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        timeout: float | None = None,
        check_status: bool = True,
    ) -> Any:
        ...


def raise_for_status(status: int, endpoint: str, text: str) -> None:
    """Map a non-200 HTTP status to the matching :class:`TransportError`."""
    if status == 200:
        return
    message = f"HTTP {status} from {endpoint}: {text[:200]}"
    if status == 404:
        raise VehicleNotFoundError(message, status_code=status, endpoint=endpoint)
    if status == 429:
        raise RateLimitError(message, status_code=status, endpoint=endpoint)
    raise TransportError(message, status_code=status, endpoint=endpoint)


class HttpTransport:
    """aiohttp-backed transport returning decoded JSON bodies."""

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        endpoint: str = "",
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        timeout: float | None = None,
        check_status: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        With ``check_status`` (the default) any non-200 status raises; with it
        disabled the body is decoded regardless of status, which suits APIs
        that describe errors in the JSON payload.
        """
        endpoint = endpoint or redact_url(url)
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        kwargs: dict[str, Any] = {"headers": request_headers}
        if json_body is not None:
            kwargs["json"] = json_body
        elif form is not None:
            kwargs["data"] = dict(form)
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        _logger.debug(
            "%s %s headers=%s body=%s",
            method,
            redact_url(url),
            redact_for_log(request_headers),
            redact_for_log(json_body if json_body is not None else form),
        )

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                text = await resp.text()
                status = resp.status
        except TimeoutError as exc:
            raise RequestTimeoutError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except UnicodeDecodeError as exc:
            raise TransportError(f"Undecodable body from {endpoint}: {exc}", endpoint=endpoint) from exc

        _logger.debug("%s %s -> HTTP %s (%d bytes)", method, endpoint, status, len(text))

        if check_status:
            raise_for_status(status, endpoint, text)

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            if not check_status:
                raise_for_status(status, endpoint, text)
            raise TransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

