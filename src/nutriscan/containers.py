"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutriscan.adapters.supabase_meal_repository import SupabaseMealRepository
from nutriscan.config import Settings
from nutriscan.services.identification import IdentificationService
from nutriscan.services.meals import MealLogService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identification_service: IdentificationService
    meal_log_service: MealLogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    identification_service = IdentificationService.from_settings(resolved_settings)
    meal_log_service = MealLogService(
        repository=SupabaseMealRepository(supabase_client),
        timezone_name=resolved_settings.diary_timezone,
    )

    async def close_resources() -> None:
        await identification_service.close()

    return AppContainer(
        settings=resolved_settings,
        identification_service=identification_service,
        meal_log_service=meal_log_service,
        close_resources=close_resources,
    )
