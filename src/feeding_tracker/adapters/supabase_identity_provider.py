"""Supabase Auth implementation of caller identity."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import AuthError, Client

from feeding_tracker.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Validates access tokens against Supabase Auth."""

    client: Client

    def resolve_owner(self, access_token: str) -> UUID | None:
        """Return the Supabase user id behind an access token."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError:
            logger.info("Rejected access token")
            return None
        if response is None or response.user is None:
            return None
        return UUID(str(response.user.id))
