"""Domain models for the user's tracked nutrition state."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from macro_coach.domain.nutrition import EMPTY_MACROS, MacroProfile


@dataclass(frozen=True)
class UserProfile:
    """Profile targets and gamification counters for a user."""

    user_id: UUID
    display_name: str
    daily_target: MacroProfile
    current_streak: int = 0
    longest_streak: int = 0
    coins: int = 0
    sleep_minutes: float | None = None
    heart_rate: float | None = None


@dataclass(frozen=True)
class FoodLogEntry:
    """A single food diary entry."""

    food_name: str
    macros: MacroProfile
    logged_at: datetime
    meal_slot: str | None = None
    food_id: str | None = None
    id: UUID | None = None


@dataclass(frozen=True)
class UserState:
    """Read-only view of a user's profile and today's diary."""

    profile: UserProfile
    logs_today: list[FoodLogEntry] = field(default_factory=list)

    @property
    def intake(self) -> MacroProfile:
        """Sum of today's logged macros."""
        total = EMPTY_MACROS
        for entry in self.logs_today:
            total = total + entry.macros
        return total

    @property
    def remaining(self) -> MacroProfile:
        """Macros left for today, never negative."""
        target = self.profile.daily_target
        intake = self.intake
        return MacroProfile(
            calories=max(0.0, target.calories - intake.calories),
            protein_g=max(0.0, target.protein_g - intake.protein_g),
            fat_g=max(0.0, target.fat_g - intake.fat_g),
            carbs_g=max(0.0, target.carbs_g - intake.carbs_g),
        )

    @property
    def progress_percent(self) -> int:
        """Calorie progress towards the daily target, clamped to 0-100."""
        target = self.profile.daily_target.calories
        if target <= 0:
            return 0
        progress = round(self.intake.calories / target * 100)
        return max(0, min(progress, 100))

    @property
    def last_log(self) -> FoodLogEntry | None:
        """Most recent entry logged today."""
        if not self.logs_today:
            return None
        return max(self.logs_today, key=lambda entry: entry.logged_at)
