"""Supabase repository for diary meals."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutriscan.domain.meals import MealRecord, MealType
from nutriscan.services.meals import MealRepository

_COLUMNS = (
    "id, name, meal_type, calories, protein_g, carbs_g, fat_g, image, "
    "source_model, logged_at"
)
_NIL_UUID = "00000000-0000-0000-0000-000000000000"


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for diary meals."""

    client: Client

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
        """Insert a meal row and return the stored record."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "name": name,
                    "meal_type": meal_type.value,
                    "calories": calories,
                    "protein_g": protein,
                    "carbs_g": carbs,
                    "fat_g": fat,
                    "image": image,
                    "source_model": source_model,
                    "logged_at": logged_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return _parse_row(response.data[0])

    def list_meals(self, start: datetime, end: datetime) -> list[MealRecord]:
        """Return meals in the time range."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_recent_meals(self, limit: int) -> list[MealRecord]:
        """Return the latest meals."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .order("logged_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def delete_meal(self, meal_id: UUID) -> bool:
        """Delete a meal by id."""
        response = self.client.table("meals").delete().eq("id", str(meal_id)).execute()
        return bool(response.data)

    def delete_all(self) -> None:
        """Delete every meal row."""
        # PostgREST refuses unfiltered deletes.
        self.client.table("meals").delete().neq("id", _NIL_UUID).execute()


def _parse_row(row: dict[str, object]) -> MealRecord:
    return MealRecord(
        id=UUID(str(row["id"])),
        name=str(row.get("name") or ""),
        meal_type=MealType(row.get("meal_type") or MealType.SNACK.value),
        calories=float(row.get("calories") or 0.0),
        protein=float(row.get("protein_g") or 0.0),
        carbs=float(row.get("carbs_g") or 0.0),
        fat=float(row.get("fat_g") or 0.0),
        image=str(row.get("image") or ""),
        source_model=row.get("source_model"),  # type: ignore[arg-type]
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
    )
