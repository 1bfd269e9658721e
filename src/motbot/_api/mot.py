"""MOT History API client.

Endpoint:
  - GET {base}/registration/{registration}
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from motbot._api.oauth import ClientCredentialsTokenProvider
from motbot._transport import Transport
from motbot.exceptions import TransportError
from motbot.models.mot import MotVehicle

_logger = logging.getLogger(__name__)


class MotHistoryClient:
    """Fetch test-history records from the DVSA MOT History API."""

    def __init__(
        self,
        transport: Transport,
        token_provider: ClientCredentialsTokenProvider,
        *,
        api_key: str,
        base_url: str,
        timeout: float = 30.0,
    ) -> None:
        self._transport = transport
        self._tokens = token_provider
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch(self, registration: str) -> MotVehicle:
        """Return the vehicle and its MOT tests for *registration*.

        A 401 answer drops the cached token and retries once with a fresh one.
        """
        try:
            return await self._fetch(registration)
        except TransportError as exc:
            if exc.status_code != 401:
                raise
            _logger.debug("MOT API rejected the access token, refreshing")
            self._tokens.invalidate()
            return await self._fetch(registration)

    async def _fetch(self, registration: str) -> MotVehicle:
        token = await self._tokens.get_token()
        url = f"{self._base_url}/registration/{quote(registration, safe='')}"
        response = await self._transport.request_json(
            "GET",
            url,
            endpoint="mot/registration",
            headers={
                "X-API-Key": self._api_key,
                "Authorization": token.authorization,
            },
            timeout=self._timeout,
        )
        if not isinstance(response, dict):
            raise TransportError("MOT response is not an object", endpoint="mot/registration")
        return MotVehicle.model_validate(response)
