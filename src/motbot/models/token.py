"""OAuth access token model."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

#: Refresh this many seconds before the server-declared expiry.
DEFAULT_EXPIRY_LEEWAY: float = 60.0


class AccessToken(BaseModel):
    """Bearer token returned by the client-credentials grant.

    Parameters
    ----------
    access_token : str
        Bearer token value.
    token_type : str
        Token type (``Bearer``).
    expires_in : float
        Lifetime in seconds as declared by the token endpoint.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the token was
        obtained. Defaults to *now*.
    raw : dict
        Full decoded token response.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    access_token: str
    token_type: str = "Bearer"
    expires_in: float = 3600.0
    created_at: float = Field(default_factory=time.monotonic)
    raw: dict[str, Any] = Field(default_factory=dict)

    def is_expired(self, leeway: float = DEFAULT_EXPIRY_LEEWAY) -> bool:
        """Whether the token is expired or about to expire within *leeway* seconds."""
        return (time.monotonic() - self.created_at) >= max(self.expires_in - leeway, 0.0)

    @property
    def authorization(self) -> str:
        """Value for the ``Authorization`` header."""
        return f"{self.token_type or 'Bearer'} {self.access_token}"
