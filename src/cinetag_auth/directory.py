"""User directory contract. A verified identity becomes a local user here.

The policies only depend on :class:`UserDirectory`. Real deployments back it
with the application's user table; :class:`InMemoryUserDirectory` is a
process-local implementation for examples and tests.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from cinetag_auth.identity import Identity

DEFAULT_DISPLAY_NAME = "No name"


@runtime_checkable
class UserDirectory(Protocol):
    async def ensure_user(self, identity: Identity) -> Any:
        """Return the local user for ``identity``, creating it on first sight."""
        ...


@dataclass(frozen=True, slots=True)
class LocalUser:
    """A local user record keyed by the provider's subject."""

    id: uuid.UUID
    subject: str
    email: str
    display_name: str
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def resolve_display_name(identity: Identity) -> str:
    """Join first and last name; fall back to a placeholder when both are absent."""
    names = [n for n in (identity.first_name, identity.last_name) if n]
    if names:
        return " ".join(names)
    return DEFAULT_DISPLAY_NAME


class InMemoryUserDirectory:
    """Dict-backed directory. Existing users are returned unchanged."""

    def __init__(self) -> None:
        self._users: dict[str, LocalUser] = {}

    async def ensure_user(self, identity: Identity) -> LocalUser:
        existing = self._users.get(identity.subject)
        if existing is not None:
            return existing
        user = LocalUser(
            id=uuid.uuid4(),
            subject=identity.subject,
            email=identity.email,
            display_name=resolve_display_name(identity),
            avatar_url=identity.avatar_url,
        )
        self._users[identity.subject] = user
        return user

    def get(self, subject: str) -> LocalUser | None:
        return self._users.get(subject)

    def __len__(self) -> int:
        return len(self._users)
