"""Canonical food identification result."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Confidence(str, Enum):
    """How sure the model is about the identification."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Macros(BaseModel):
    """Macronutrients in grams for the whole item."""

    model_config = ConfigDict(frozen=True)

    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)


class ScannedFood(BaseModel):
    """Provider-independent result of one food identification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    calories: float = Field(default=0.0, ge=0.0)
    confidence: Confidence = Confidence.MEDIUM
    macros: Macros = Field(default_factory=Macros)
    image: str
    source_model: str = Field(alias="sourceModel")
