"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_resolver.adapters.off_client import HttpxOpenFoodFactsClient
from nutrition_resolver.adapters.supabase_food_store import SupabaseFoodStore
from nutrition_resolver.config import Settings
from nutrition_resolver.services.external import ExternalFoodSource
from nutrition_resolver.services.foods import TieredFoodRepository
from nutrition_resolver.services.rate_limiter import SlidingWindowRateLimiter
from nutrition_resolver.services.resolution import ResolutionEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_repository: TieredFoodRepository
    external_source: ExternalFoodSource
    resolution_engine: ResolutionEngine
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_repository = TieredFoodRepository(SupabaseFoodStore(supabase_client))
    off_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.off_base_url,
        user_agent=resolved_settings.off_user_agent,
        timeout_seconds=resolved_settings.off_timeout_seconds,
    )
    external_source = ExternalFoodSource(
        client=off_client,
        barcode_limiter=SlidingWindowRateLimiter(
            capacity=resolved_settings.off_barcode_requests_per_minute,
            window_seconds=resolved_settings.rate_limit_window_seconds,
        ),
        search_limiter=SlidingWindowRateLimiter(
            capacity=resolved_settings.off_search_requests_per_minute,
            window_seconds=resolved_settings.rate_limit_window_seconds,
        ),
        web_base_url=resolved_settings.off_base_url,
        language=resolved_settings.off_language,
    )
    resolution_engine = ResolutionEngine(
        repository=food_repository,
        external_source=external_source,
        local_cap=resolved_settings.local_search_cap,
        external_cap=resolved_settings.external_search_cap,
    )

    async def close_resources() -> None:
        await off_client.close()

    return AppContainer(
        settings=resolved_settings,
        food_repository=food_repository,
        external_source=external_source,
        resolution_engine=resolution_engine,
        close_resources=close_resources,
    )
