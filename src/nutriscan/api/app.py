"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request

from nutriscan.api.scan_models import (
    MealCreateRequest,
    MealResponse,
    ScanRequest,
    TodayResponse,
)
from nutriscan.app_logging import configure_logging
from nutriscan.containers import AppContainer
from nutriscan.domain.errors import (
    IdentificationFailedError,
    InvalidImageError,
    NoProviderConfiguredError,
)
from nutriscan.domain.scan import ScannedFood
from nutriscan.services.meals import daily_calories


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/scans")
    async def scan_food(payload: ScanRequest, request: Request) -> ScannedFood:
        """Identify the food in a photo with the configured AI providers."""
        state_container: AppContainer = request.app.state.container
        try:
            return await state_container.identification_service.identify_food(
                payload.image
            )
        except NoProviderConfiguredError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except InvalidImageError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except IdentificationFailedError as exc:
            logger.warning("Scan failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    @app.post("/meals", status_code=201)
    async def create_meal(payload: MealCreateRequest, request: Request) -> MealResponse:
        """Store a scan result in the diary."""
        state_container: AppContainer = request.app.state.container
        record = state_container.meal_log_service.log_scan(
            payload, logged_at=payload.logged_at
        )
        return MealResponse.from_record(record)

    @app.get("/meals/today")
    async def today_meals(request: Request) -> TodayResponse:
        """Return today's meals and calorie total."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_log_service.list_today()
        return TodayResponse(
            meals=[MealResponse.from_record(meal) for meal in meals],
            total_calories=daily_calories(meals),
        )

    @app.get("/meals/history")
    async def meal_history(request: Request) -> dict[str, list[MealResponse]]:
        """Return meals grouped by day, newest first."""
        state_container: AppContainer = request.app.state.container
        history = state_container.meal_log_service.history()
        return {
            day.isoformat(): [MealResponse.from_record(meal) for meal in meals]
            for day, meals in history.items()
        }

    @app.delete("/meals/{meal_id}")
    async def delete_meal(meal_id: UUID, request: Request) -> dict[str, str]:
        """Delete one diary entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.meal_log_service.delete_meal(meal_id):
            raise HTTPException(status_code=404, detail="Meal not found")
        return {"status": "ok"}

    @app.delete("/meals")
    async def clear_meals(request: Request) -> dict[str, str]:
        """Delete every diary entry."""
        state_container: AppContainer = request.app.state.container
        state_container.meal_log_service.clear()
        return {"status": "ok"}

    return app
