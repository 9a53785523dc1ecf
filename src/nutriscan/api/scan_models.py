"""Pydantic models for the scan and diary endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from nutriscan.domain.meals import MealRecord, MealType
from nutriscan.domain.scan import ScannedFood


class ScanRequest(BaseModel):
    """Photo to identify, base64 JPEG without a data URI prefix."""

    image: str


class MealCreateRequest(ScannedFood):
    """Scan result to store, possibly edited by the user."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image: str = ""
    source_model: str = Field(default="manual", alias="sourceModel")
    logged_at: datetime | None = Field(default=None, alias="loggedAt")


class MealResponse(BaseModel):
    """Diary entry as returned by the API."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    name: str
    meal_type: MealType = Field(alias="type")
    calories: float
    protein: float
    carbs: float
    fat: float
    image: str
    source_model: str | None = Field(default=None, alias="sourceModel")
    logged_at: datetime = Field(alias="loggedAt")

    @classmethod
    def from_record(cls, record: MealRecord) -> "MealResponse":
        """Convert a domain record."""
        return cls(
            id=record.id,
            name=record.name,
            meal_type=record.meal_type,
            calories=record.calories,
            protein=record.protein,
            carbs=record.carbs,
            fat=record.fat,
            image=record.image,
            source_model=record.source_model,
            logged_at=record.logged_at,
        )


class TodayResponse(BaseModel):
    """Today's meals with their calorie total."""

    model_config = ConfigDict(populate_by_name=True)

    meals: list[MealResponse]
    total_calories: float = Field(alias="totalCalories")
