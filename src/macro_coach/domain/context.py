"""Context snapshot models used for prompting and fallbacks."""

from dataclasses import asdict, dataclass
from enum import StrEnum

MORNING_START_HOUR = 5
AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 17
NIGHT_START_HOUR = 21


class TimeOfDay(StrEnum):
    """Coarse bucket of the user's local hour."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        """Map a 0-23 hour to its bucket."""
        if MORNING_START_HOUR <= hour < AFTERNOON_START_HOUR:
            return cls.MORNING
        if AFTERNOON_START_HOUR <= hour < EVENING_START_HOUR:
            return cls.AFTERNOON
        if EVENING_START_HOUR <= hour < NIGHT_START_HOUR:
            return cls.EVENING
        return cls.NIGHT


class MessageCategory(StrEnum):
    """Categories of generated dashboard messages."""

    GREETING = "greeting"
    INSIGHT = "insight"
    RECOMMENDATION = "recommendation"
    SUMMARY = "summary"


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable summary of the user's state at request time."""

    time_of_day: TimeOfDay
    hour: int
    is_first_open_today: bool
    calories_consumed: float
    calories_target: float
    calories_remaining: float
    protein_consumed: float
    protein_target: float
    protein_remaining: float
    carbs_consumed: float
    carbs_target: float
    carbs_remaining: float
    fat_consumed: float
    fat_target: float
    fat_remaining: float
    progress_percent: int
    logs_today: int
    current_streak: int
    longest_streak: int
    sleep_hours: float | None = None
    strain: float | None = None
    coins: int = 0
    last_log_name: str | None = None
    display_name: str = ""

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable representation."""
        payload = asdict(self)
        payload["time_of_day"] = self.time_of_day.value
        return payload
