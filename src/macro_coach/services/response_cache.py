"""Time-boxed cache of generated messages, one entry per category."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ValidationError

from macro_coach.domain.context import MessageCategory
from macro_coach.services.store import KeyValueStore

CACHE_KEY_PREFIX = "ai_message_cache_"
DEFAULT_TTL = timedelta(minutes=20)

_logger = logging.getLogger(__name__)


class CachedMessage(BaseModel):
    """Persisted cache envelope."""

    category: str
    message: str
    created_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ResponseCache:
    """Category-keyed message cache backed by a key-value store."""

    store: KeyValueStore
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=_utc_now)
    _extra_categories: set[str] = field(default_factory=set, init=False)

    def get(self, category: str) -> str | None:
        """Return the cached message if it exists and is younger than the TTL."""
        try:
            raw = self.store.get(_cache_key(category))
        except Exception as exc:
            _logger.warning("Cache read failed: category=%s error=%r", category, exc)
            return None
        if not raw:
            return None
        try:
            entry = CachedMessage.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable cache entry: category=%s", category)
            return None
        if self.clock() - entry.created_at >= self.ttl:
            return None
        return entry.message

    def put(self, category: str, message: str) -> None:
        """Store a message, replacing any previous entry for the category."""
        if category not in set(MessageCategory):
            self._extra_categories.add(category)
        entry = CachedMessage(
            category=category, message=message, created_at=self.clock()
        )
        try:
            self.store.set(_cache_key(category), entry.model_dump_json())
        except Exception as exc:
            _logger.warning("Cache write failed: category=%s error=%r", category, exc)

    def clear(self, category: str | None = None) -> None:
        """Drop one category, or every known category when none is given."""
        if category is not None:
            self._delete(category)
            self._extra_categories.discard(category)
            return
        for known in [*MessageCategory, *sorted(self._extra_categories)]:
            self._delete(str(known))
        self._extra_categories.clear()

    def _delete(self, category: str) -> None:
        try:
            self.store.delete(_cache_key(category))
        except Exception as exc:
            _logger.warning("Cache clear failed: category=%s error=%r", category, exc)


def _cache_key(category: str) -> str:
    return f"{CACHE_KEY_PREFIX}{category}"
