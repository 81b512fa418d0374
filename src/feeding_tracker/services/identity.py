"""Caller identity resolution."""

from typing import Protocol
from uuid import UUID


class IdentityProvider(Protocol):
    """Resolves access tokens to the owning user id."""

    def resolve_owner(self, access_token: str) -> UUID | None:
        """Return the user id for a valid token, or None when it is rejected."""
