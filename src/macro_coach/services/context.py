"""Context snapshot builder."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from macro_coach.domain.context import ContextSnapshot, TimeOfDay
from macro_coach.domain.nutrition import MacroProfile
from macro_coach.domain.user_state import UserProfile, UserState
from macro_coach.services.store import KeyValueStore
from macro_coach.services.user_state import UserStateSource

LAST_OPEN_KEY = "ai_last_open_date"
DEFAULT_TARGET = MacroProfile(calories=2500, protein_g=180, fat_g=80, carbs_g=250)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ContextSnapshotBuilder:
    """Builds a fresh snapshot of the user's state for each request."""

    user_state: UserStateSource
    store: KeyValueStore
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = field(default=_utc_now)

    def build(self) -> ContextSnapshot:
        """Read the user state once and summarize it."""
        local_now = self.clock().astimezone(ZoneInfo(self.timezone_name))
        state = self._read_state()
        profile = state.profile
        intake = state.intake
        remaining = state.remaining
        target = profile.daily_target
        last_log = state.last_log
        return ContextSnapshot(
            time_of_day=TimeOfDay.from_hour(local_now.hour),
            hour=local_now.hour,
            is_first_open_today=self._mark_open(local_now),
            calories_consumed=intake.calories,
            calories_target=target.calories,
            calories_remaining=remaining.calories,
            protein_consumed=intake.protein_g,
            protein_target=target.protein_g,
            protein_remaining=remaining.protein_g,
            carbs_consumed=intake.carbs_g,
            carbs_target=target.carbs_g,
            carbs_remaining=remaining.carbs_g,
            fat_consumed=intake.fat_g,
            fat_target=target.fat_g,
            fat_remaining=remaining.fat_g,
            progress_percent=state.progress_percent,
            logs_today=len(state.logs_today),
            current_streak=profile.current_streak,
            longest_streak=max(profile.longest_streak, profile.current_streak),
            sleep_hours=(
                round(profile.sleep_minutes / 60, 1) if profile.sleep_minutes else None
            ),
            strain=round(profile.heart_rate / 10) if profile.heart_rate else None,
            coins=profile.coins,
            last_log_name=last_log.food_name if last_log else None,
            display_name=_first_name(profile.display_name),
        )

    def _read_state(self) -> UserState:
        try:
            return self.user_state.get_state()
        except Exception:
            _logger.exception("Failed to read user state, using default targets")
            return UserState(
                profile=UserProfile(
                    user_id=UUID(int=0), display_name="", daily_target=DEFAULT_TARGET
                )
            )

    def _mark_open(self, local_now: datetime) -> bool:
        """Return True on the first call of the local calendar day."""
        today = local_now.date().isoformat()
        try:
            if self.store.get(LAST_OPEN_KEY) == today:
                return False
            self.store.set(LAST_OPEN_KEY, today)
        except Exception as exc:
            _logger.warning("Failed to track first open of the day: %r", exc)
            return False
        return True


def _first_name(display_name: str) -> str:
    parts = display_name.split()
    return parts[0] if parts else ""
