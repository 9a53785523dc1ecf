"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

import pytest

from nutriscan.adapters.gemini_vision_client import GeminiClient, GeminiReply
from nutriscan.adapters.openai_vision_client import ChatReply, ChatVisionClient
from nutriscan.config import Settings
from nutriscan.containers import AppContainer
from nutriscan.domain.errors import ProviderError, ProviderErrorKind
from nutriscan.domain.meals import MealRecord, MealType
from nutriscan.domain.scan import ScannedFood
from nutriscan.services.identification import IdentificationService
from nutriscan.services.meals import MealLogService, MealRepository
from nutriscan.services.providers import ProviderAdapter

APPLE_JSON = (
    '{"name":"苹果","calories":95,"confidence":"High",'
    '"macros":{"protein":0.5,"carbs":25,"fat":0.3}}'
)
IMAGE_B64 = "aW1hZ2UtYnl0ZXM="


@dataclass
class FakeGeminiClient(GeminiClient):
    """Gemini client replaying scripted replies or errors per model."""

    outcomes: dict[str, list[GeminiReply | Exception]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    closed: bool = False

    async def generate(
        self,
        *,
        model: str,
        image_bytes: bytes,
        prompt: str,
        schema: dict[str, object],
    ) -> GeminiReply:
        self.calls.append(model)
        outcome = self.outcomes[model].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeChatVisionClient(ChatVisionClient):
    """Chat client returning a fixed reply or raising a fixed error."""

    reply: ChatReply = field(
        default_factory=lambda: ChatReply(content=APPLE_JSON, choice_count=1)
    )
    error: Exception | None = None
    delay_seconds: float = 0.0
    requests: list[dict[str, object]] = field(default_factory=list)
    closed: bool = False

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        max_tokens: int,
        temperature: float,
    ) -> ChatReply:
        self.requests.append(
            {
                "model": model,
                "prompt": prompt,
                "image_data_url": image_data_url,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.closed = True


@dataclass
class ScriptedProvider(ProviderAdapter):
    """Provider that succeeds or fails after a delay, without any network."""

    name: str
    delay_seconds: float = 0.0
    food_name: str | None = "苹果"
    failure: str = "failed"
    calls: int = 0
    finished: bool = False
    closed: bool = False

    async def identify(self, image_base64: str) -> ScannedFood:
        self.calls += 1
        await asyncio.sleep(self.delay_seconds)
        self.finished = True
        if self.food_name is None:
            raise ProviderError(
                ProviderErrorKind.REQUEST_FAILED, self.name, self.failure
            )
        return ScannedFood(
            name=self.food_name,
            calories=95,
            image=f"data:image/jpeg;base64,{image_base64}",
            source_model=self.name,
        )

    async def close(self) -> None:
        self.closed = True


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[UUID, MealRecord] = field(default_factory=dict)

    def create_meal(  # noqa: PLR0913
        self,
        *,
        name: str,
        meal_type: MealType,
        calories: float,
        protein: float,
        carbs: float,
        fat: float,
        image: str,
        source_model: str | None,
        logged_at: datetime,
    ) -> MealRecord:
        record = MealRecord(
            id=uuid4(),
            name=name,
            meal_type=meal_type,
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            image=image,
            source_model=source_model,
            logged_at=logged_at,
        )
        self.meals[record.id] = record
        return record

    def list_meals(self, start: datetime, end: datetime) -> list[MealRecord]:
        return [meal for meal in self.meals.values() if start <= meal.logged_at < end]

    def list_recent_meals(self, limit: int) -> list[MealRecord]:
        ordered = sorted(
            self.meals.values(), key=lambda meal: meal.logged_at, reverse=True
        )
        return ordered[:limit]

    def delete_meal(self, meal_id: UUID) -> bool:
        return self.meals.pop(meal_id, None) is not None

    def delete_all(self) -> None:
        self.meals.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        gemini_api_key=None,
        openai_api_key=None,
        diary_timezone="UTC",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def container(
    settings: Settings, meal_repository: InMemoryMealRepository
) -> AppContainer:
    identification_service = IdentificationService(
        providers=[ScriptedProvider(name="Gemini", delay_seconds=0.01)]
    )
    meal_log_service = MealLogService(
        repository=meal_repository, timezone_name=settings.diary_timezone
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        identification_service=identification_service,
        meal_log_service=meal_log_service,
        close_resources=close_resources,
    )
