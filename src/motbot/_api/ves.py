"""DVLA Vehicle Enquiry Service client.

Endpoint:
  - POST {base} with ``{"registrationNumber": ...}``
"""

from __future__ import annotations

from motbot._transport import Transport
from motbot.exceptions import TransportError
from motbot.models.ves import VesVehicle


class VesClient:
    """Fetch registration and tax records from the DVLA VES API."""

    def __init__(
        self,
        transport: Transport,
        *,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout

    async def fetch(self, registration: str) -> VesVehicle:
        response = await self._transport.request_json(
            "POST",
            self._base_url,
            endpoint="ves/vehicles",
            headers={"x-api-key": self._api_key},
            json_body={"registrationNumber": registration},
            timeout=self._timeout,
        )
        if not isinstance(response, dict):
            raise TransportError("VES response is not an object", endpoint="ves/vehicles")
        return VesVehicle.model_validate(response)
