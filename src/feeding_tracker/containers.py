"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from feeding_tracker.adapters.feeding_api_client import HttpxFeedingClient
from feeding_tracker.adapters.supabase_feeding_repository import (
    SupabaseFeedingRepository,
)
from feeding_tracker.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from feeding_tracker.config import Settings
from feeding_tracker.services.feedings import FeedingService
from feeding_tracker.services.identity import IdentityProvider
from feeding_tracker.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_provider: IdentityProvider
    feeding_service: FeedingService
    stats_service: StatsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    feeding_repository = SupabaseFeedingRepository(supabase_client)
    identity_provider = SupabaseIdentityProvider(supabase_client)
    feeding_service = FeedingService(feeding_repository)
    stats_service = StatsService(
        feeding_service=feeding_service,
        history_limit=resolved_settings.stats_history_limit,
    )

    return AppContainer(
        settings=resolved_settings,
        identity_provider=identity_provider,
        feeding_service=feeding_service,
        stats_service=stats_service,
    )


def build_feeding_client(
    access_token: str, settings: Settings | None = None
) -> HttpxFeedingClient:
    """Create an API client for a signed-in caller; close it when done."""
    resolved_settings = settings or Settings()
    return HttpxFeedingClient.create(resolved_settings.api_base_url, access_token)
