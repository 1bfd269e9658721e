"""OAuth2 client-credentials token handling for the MOT History API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from motbot._transport import Transport
from motbot.exceptions import AuthenticationError, TransportError
from motbot.models.token import AccessToken

_logger = logging.getLogger(__name__)

_ENDPOINT = "oauth2/token"


def parse_token_response(response: Any) -> AccessToken:
    """Validate a token endpoint response into an :class:`AccessToken`."""
    if not isinstance(response, dict) or not response.get("access_token"):
        raise AuthenticationError("Token response missing access_token")
    try:
        expires_in = float(response.get("expires_in", 3600))
    except (TypeError, ValueError):
        expires_in = 3600.0
    return AccessToken(
        access_token=str(response["access_token"]),
        token_type=str(response.get("token_type") or "Bearer"),
        expires_in=expires_in,
        raw=response,
    )


class ClientCredentialsTokenProvider:
    """Fetch and cache a client-credentials bearer token.

    The token is reused until shortly before it expires. Concurrent callers
    share one refresh through an :class:`asyncio.Lock`.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: str,
        timeout: float = 30.0,
    ) -> None:
        self._transport = transport
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._timeout = timeout
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> AccessToken:
        """Return a valid token, requesting a new one if needed."""
        token = self._token
        if token is not None and not token.is_expired():
            return token
        async with self._lock:
            token = self._token
            if token is not None and not token.is_expired():
                return token
            self._token = await self._request_token()
            return self._token

    def invalidate(self) -> None:
        """Drop the cached token (next call will request a new one)."""
        self._token = None

    async def _request_token(self) -> AccessToken:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "scope": self._scope,
        }
        try:
            response = await self._transport.request_json(
                "POST",
                self._token_url,
                endpoint=_ENDPOINT,
                form=form,
                timeout=self._timeout,
            )
        except TransportError as exc:
            if exc.status_code in (400, 401, 403):
                raise AuthenticationError(f"Token request rejected: {exc}") from exc
            raise
        token = parse_token_response(response)
        _logger.debug("Obtained MOT access token valid for %.0fs", token.expires_in)
        return token
