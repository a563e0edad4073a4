"""User state access and the shared food-log mutation path."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from macro_coach.domain.nutrition import MacroProfile
from macro_coach.domain.user_state import FoodLogEntry, UserProfile, UserState

LOG_REWARD_COINS = 10

_logger = logging.getLogger(__name__)


class UserStateRepository(Protocol):
    """Persistence interface for profiles and food logs."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the user's profile, if present."""

    def list_food_logs(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodLogEntry]:
        """Return food log entries within a time range."""

    def create_food_log(self, user_id: UUID, entry: FoodLogEntry) -> FoodLogEntry:
        """Persist a food log entry and return it with its id."""

    def add_coins(self, user_id: UUID, amount: int) -> None:
        """Credit reward coins to the user."""


class UserStateSource(Protocol):
    """Read-only access to the current user state."""

    def get_state(self) -> UserState:
        """Return the user's profile and today's diary."""


class FoodLogger(Protocol):
    """Mutation path for adding entries to the food diary."""

    def log_food(
        self,
        name: str,
        macros: MacroProfile,
        meal_slot: str | None = None,
        food_id: str | None = None,
    ) -> FoodLogEntry:
        """Log a food entry and apply its side effects."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class UserStateService:
    """Service that reads user state and owns the food-log mutation path."""

    repository: UserStateRepository
    user_id: UUID
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = field(default=_utc_now)
    on_food_logged: list[Callable[[], None]] = field(default_factory=list)

    def get_state(self) -> UserState:
        """Return the profile and today's entries in the user's timezone."""
        profile = self.repository.get_profile(self.user_id)
        if profile is None:
            raise LookupError(f"No profile for user {self.user_id}")
        start, end = self._today_bounds()
        logs = self.repository.list_food_logs(self.user_id, start, end)
        return UserState(profile=profile, logs_today=logs)

    def log_food(
        self,
        name: str,
        macros: MacroProfile,
        meal_slot: str | None = None,
        food_id: str | None = None,
    ) -> FoodLogEntry:
        """Persist a diary entry, accrue the reward and notify listeners."""
        entry = self.repository.create_food_log(
            self.user_id,
            FoodLogEntry(
                food_name=name,
                macros=macros,
                logged_at=self.clock(),
                meal_slot=meal_slot,
                food_id=food_id,
            ),
        )
        self.repository.add_coins(self.user_id, LOG_REWARD_COINS)
        _logger.info("Logged food: user=%s name=%s", self.user_id, name)
        for listener in self.on_food_logged:
            listener()
        return entry

    def _today_bounds(self) -> tuple[datetime, datetime]:
        tz = ZoneInfo(self.timezone_name)
        now = self.clock().astimezone(tz)
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        return start.astimezone(UTC), end.astimezone(UTC)
