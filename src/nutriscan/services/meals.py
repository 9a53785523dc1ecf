"""Meal diary service."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutriscan.domain.meals import MealRecord, MealType, infer_meal_type
from nutriscan.domain.scan import ScannedFood


class MealRepository(Protocol):
    """Persistence interface for diary entries."""

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
        """Store a meal and return the created record."""

    def list_meals(self, start: datetime, end: datetime) -> list[MealRecord]:
        """Return meals logged within a time range."""

    def list_recent_meals(self, limit: int) -> list[MealRecord]:
        """Return the most recent meals, newest first."""

    def delete_meal(self, meal_id: UUID) -> bool:
        """Delete a meal; return False if it did not exist."""

    def delete_all(self) -> None:
        """Remove every meal from the diary."""


@dataclass
class MealLogService:
    """Stores scan results as diary entries and reads them back by day."""

    repository: MealRepository
    timezone_name: str = "UTC"
    history_limit: int = 500

    def log_scan(self, food: ScannedFood, logged_at: datetime | None = None) -> MealRecord:
        """Save a (possibly user-edited) scan result as a meal."""
        tz = ZoneInfo(self.timezone_name)
        when = logged_at or datetime.now(tz=UTC)
        if when.tzinfo is None:
            when = when.replace(tzinfo=tz)
        return self.repository.create_meal(
            name=food.name,
            meal_type=infer_meal_type(when.astimezone(tz).hour),
            calories=food.calories,
            protein=food.macros.protein,
            carbs=food.macros.carbs,
            fat=food.macros.fat,
            image=food.image,
            source_model=food.source_model,
            logged_at=when.astimezone(UTC),
        )

    def list_today(self) -> list[MealRecord]:
        """Return today's meals in the diary timezone, newest first."""
        tz = ZoneInfo(self.timezone_name)
        start = datetime.now(tz=tz).replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        meals = self.repository.list_meals(start.astimezone(UTC), end.astimezone(UTC))
        return sorted(meals, key=lambda meal: meal.logged_at, reverse=True)

    def history(self) -> dict[date, list[MealRecord]]:
        """Group recent meals by local date, newest day and meal first."""
        tz = ZoneInfo(self.timezone_name)
        grouped: dict[date, list[MealRecord]] = defaultdict(list)
        for meal in self.repository.list_recent_meals(self.history_limit):
            grouped[meal.logged_at.astimezone(tz).date()].append(meal)
        return {
            day: sorted(grouped[day], key=lambda meal: meal.logged_at, reverse=True)
            for day in sorted(grouped, reverse=True)
        }

    def delete_meal(self, meal_id: UUID) -> bool:
        """Delete one meal."""
        return self.repository.delete_meal(meal_id)

    def clear(self) -> None:
        """Delete all meals."""
        self.repository.delete_all()


def daily_calories(meals: list[MealRecord]) -> float:
    """Sum calories over a list of meals."""
    return sum(meal.calories for meal in meals)
