"""Supabase repository for profiles and food logs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from macro_coach.domain.nutrition import MacroProfile
from macro_coach.domain.user_state import FoodLogEntry, UserProfile
from macro_coach.services.context import DEFAULT_TARGET
from macro_coach.services.user_state import UserStateRepository

_PROFILE_COLUMNS = (
    "id, display_name, target_calories, target_protein_g, target_fat_g, "
    "target_carbs_g, current_streak, longest_streak, coins, sleep_minutes, "
    "heart_rate"
)
_FOOD_LOG_COLUMNS = (
    "id, food_name, food_id, meal_slot, logged_at, calories, protein_g, fat_g, "
    "carbs_g"
)


@dataclass
class SupabaseUserStateRepository(UserStateRepository):
    """Supabase implementation for profile reads and diary writes."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user, if present."""
        response = (
            self.client.table("profiles")
            .select(_PROFILE_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserProfile(
            user_id=UUID(row["id"]),
            display_name=row.get("display_name") or "",
            daily_target=MacroProfile(
                calories=_number(row.get("target_calories"), DEFAULT_TARGET.calories),
                protein_g=_number(
                    row.get("target_protein_g"), DEFAULT_TARGET.protein_g
                ),
                fat_g=_number(row.get("target_fat_g"), DEFAULT_TARGET.fat_g),
                carbs_g=_number(row.get("target_carbs_g"), DEFAULT_TARGET.carbs_g),
            ),
            current_streak=int(row.get("current_streak") or 0),
            longest_streak=int(row.get("longest_streak") or 0),
            coins=int(row.get("coins") or 0),
            sleep_minutes=row.get("sleep_minutes"),
            heart_rate=row.get("heart_rate"),
        )

    def list_food_logs(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodLogEntry]:
        """Return food logs for a user within a time range."""
        response = (
            self.client.table("food_logs")
            .select(_FOOD_LOG_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at")
            .execute()
        )
        return [_food_log_from_row(row) for row in response.data or []]

    def create_food_log(self, user_id: UUID, entry: FoodLogEntry) -> FoodLogEntry:
        """Insert a food log row and return the stored entry."""
        response = (
            self.client.table("food_logs")
            .insert(
                {
                    "user_id": str(user_id),
                    "food_name": entry.food_name,
                    "food_id": entry.food_id,
                    "meal_slot": entry.meal_slot,
                    "logged_at": entry.logged_at.isoformat(),
                    "calories": entry.macros.calories,
                    "protein_g": entry.macros.protein_g,
                    "fat_g": entry.macros.fat_g,
                    "carbs_g": entry.macros.carbs_g,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create food log")
        return _food_log_from_row(response.data[0])

    def add_coins(self, user_id: UUID, amount: int) -> None:
        """Add reward coins to the profile balance."""
        response = (
            self.client.table("profiles")
            .select("id, coins")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Profile not found: {user_id}")
        balance = int(response.data[0].get("coins") or 0)
        self.client.table("profiles").update({"coins": balance + amount}).eq(
            "id", str(user_id)
        ).execute()


def _food_log_from_row(row: dict[str, object]) -> FoodLogEntry:
    return FoodLogEntry(
        id=UUID(str(row["id"])) if row.get("id") else None,
        food_name=str(row.get("food_name") or ""),
        food_id=row.get("food_id"),
        meal_slot=row.get("meal_slot"),
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        macros=MacroProfile(
            calories=_number(row.get("calories")),
            protein_g=_number(row.get("protein_g")),
            fat_g=_number(row.get("fat_g")),
            carbs_g=_number(row.get("carbs_g")),
        ),
    )


def _number(value: object, default: float = 0.0) -> float:
    if value is None:
        return float(default)
    return float(value)
