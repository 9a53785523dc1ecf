"""Domain models for the meal diary."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class MealType(str, Enum):
    """Meal slot a diary entry belongs to."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"


@dataclass(frozen=True)
class MealRecord:
    """Meal stored in the diary."""

    id: UUID
    name: str
    meal_type: MealType
    calories: float
    protein: float
    carbs: float
    fat: float
    image: str
    source_model: str | None
    logged_at: datetime


def infer_meal_type(hour: int) -> MealType:
    """Guess the meal slot from the local hour of day."""
    if 5 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 15:  # noqa: PLR2004
        return MealType.LUNCH
    if 17 <= hour < 22:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK
