"""Admin access policy.

Admins are configured as a static list of numeric Telegram user ids and/or
handles. A leading ``@`` is ignored on both sides of a comparison; matching
is otherwise exact and case-sensitive.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

_HANDLE_MARKER = "@"


def normalize_identity(value: str) -> str:
    """Canonical form of an admin entry or caller handle."""
    value = value.strip()
    if value.startswith(_HANDLE_MARKER):
        value = value[len(_HANDLE_MARKER) :]
    return value


@dataclasses.dataclass(frozen=True)
class AccessPolicy:
    """Immutable set of identities allowed to run privileged commands."""

    admins: frozenset[str] = frozenset()

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> AccessPolicy:
        normalized = (normalize_identity(entry) for entry in entries)
        return cls(admins=frozenset(entry for entry in normalized if entry))

    def allows(self, user_id: int | None, username: str = "") -> bool:
        """Whether the caller's id or handle is in the admin set."""
        if not self.admins:
            return False
        if user_id is not None and str(user_id) in self.admins:
            return True
        handle = normalize_identity(username or "")
        return bool(handle) and handle in self.admins
