"""Admission control for paid generation calls."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ValidationError

from macro_coach.services.store import KeyValueStore

QUOTA_STATE_KEY = "ai_rate_limit_state"
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)

_logger = logging.getLogger(__name__)


class DenialReason(StrEnum):
    """Why a remote call was not admitted."""

    COOLDOWN = "cooldown"
    HOURLY_LIMIT = "hourly_limit"
    DAILY_LIMIT = "daily_limit"


class QuotaState(BaseModel):
    """Persisted call counters and their reset timestamps."""

    hourly_count: int = 0
    hourly_reset_at: datetime
    daily_count: int = 0
    daily_reset_at: datetime
    last_call_at: datetime | None = None


@dataclass(frozen=True)
class QuotaDecision:
    """Result of an admission check."""

    allowed: bool
    reason: DenialReason | None = None


@dataclass(frozen=True)
class QuotaStats:
    """Remaining calls in the current windows."""

    hourly_remaining: int
    daily_remaining: int


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class QuotaTracker:
    """Hourly, daily and cooldown limits evaluated lazily against the store."""

    store: KeyValueStore
    max_calls_per_hour: int = 10
    max_calls_per_day: int = 50
    min_call_interval: timedelta = timedelta(seconds=5)
    clock: Callable[[], datetime] = field(default=_utc_now)

    def can_call(self) -> QuotaDecision:
        """Return whether a remote call is currently permitted."""
        state = self._load()
        now = self.clock()
        if (
            state.last_call_at is not None
            and now - state.last_call_at < self.min_call_interval
        ):
            return QuotaDecision(allowed=False, reason=DenialReason.COOLDOWN)
        if _effective_count(state.hourly_count, state.hourly_reset_at, now) >= (
            self.max_calls_per_hour
        ):
            return QuotaDecision(allowed=False, reason=DenialReason.HOURLY_LIMIT)
        if _effective_count(state.daily_count, state.daily_reset_at, now) >= (
            self.max_calls_per_day
        ):
            return QuotaDecision(allowed=False, reason=DenialReason.DAILY_LIMIT)
        return QuotaDecision(allowed=True)

    def record_call(self) -> QuotaState:
        """Count a remote call that was actually made."""
        state = self._load()
        now = self.clock()
        hourly_count = state.hourly_count
        hourly_reset_at = state.hourly_reset_at
        if now >= hourly_reset_at:
            hourly_count = 0
            hourly_reset_at = now + HOUR
        daily_count = state.daily_count
        daily_reset_at = state.daily_reset_at
        if now >= daily_reset_at:
            daily_count = 0
            daily_reset_at = now + DAY
        updated = QuotaState(
            hourly_count=hourly_count + 1,
            hourly_reset_at=hourly_reset_at,
            daily_count=daily_count + 1,
            daily_reset_at=daily_reset_at,
            last_call_at=now,
        )
        try:
            self.store.set(QUOTA_STATE_KEY, updated.model_dump_json())
        except Exception as exc:
            _logger.warning("Failed to persist quota state: %r", exc)
        return updated

    def stats(self) -> QuotaStats:
        """Return remaining calls for display and diagnostics."""
        state = self._load()
        now = self.clock()
        hourly_used = _effective_count(state.hourly_count, state.hourly_reset_at, now)
        daily_used = _effective_count(state.daily_count, state.daily_reset_at, now)
        return QuotaStats(
            hourly_remaining=max(0, self.max_calls_per_hour - hourly_used),
            daily_remaining=max(0, self.max_calls_per_day - daily_used),
        )

    def _load(self) -> QuotaState:
        try:
            raw = self.store.get(QUOTA_STATE_KEY)
        except Exception as exc:
            _logger.warning("Failed to read quota state, using fresh windows: %r", exc)
            raw = None
        if raw:
            try:
                return QuotaState.model_validate_json(raw)
            except ValidationError:
                _logger.warning("Discarding unreadable quota state")
        now = self.clock()
        return QuotaState(hourly_reset_at=now + HOUR, daily_reset_at=now + DAY)


def _effective_count(count: int, reset_at: datetime, now: datetime) -> int:
    """Treat a window whose reset time has passed as already reset."""
    if now >= reset_at:
        return 0
    return count
