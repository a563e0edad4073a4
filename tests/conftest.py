"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from macro_coach.config import Settings
from macro_coach.containers import AppContainer
from macro_coach.domain.coach import ChatTurn, ToolDescriptor
from macro_coach.domain.nutrition import FoodItem, MacroProfile
from macro_coach.domain.user_state import FoodLogEntry, UserProfile
from macro_coach.services.coach import CoachService
from macro_coach.services.context import ContextSnapshotBuilder
from macro_coach.services.food_catalog import FoodCatalog
from macro_coach.services.generation import GenerationClient
from macro_coach.services.quota import QuotaTracker
from macro_coach.services.response_cache import ResponseCache
from macro_coach.services.store import InMemoryKeyValueStore, KeyValueStore
from macro_coach.services.tools import ToolExecutor
from macro_coach.services.user_state import UserStateRepository, UserStateService

USER_ID = UUID("00000000-0000-0000-0000-000000000001")
DEFAULT_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
TARGET = MacroProfile(calories=2000, protein_g=150, fat_g=70, carbs_g=200)


@dataclass
class FakeClock:
    now: datetime = DEFAULT_NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class FakeGenerationClient(GenerationClient):
    replies: list[object] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(
        self,
        *,
        system_prompt: str,
        conversation: list[ChatTurn],
        tools: list[ToolDescriptor],
    ) -> dict[str, object]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "conversation": conversation,
                "tools": tools,
            }
        )
        if not self.replies:
            raise RuntimeError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@dataclass
class SlowGenerationClient(GenerationClient):
    delay_seconds: float = 1.0

    async def generate(
        self,
        *,
        system_prompt: str,
        conversation: list[ChatTurn],
        tools: list[ToolDescriptor],
    ) -> dict[str, object]:
        await asyncio.sleep(self.delay_seconds)
        return {"text": "Too late"}


@dataclass
class InMemoryUserStateRepository(UserStateRepository):
    profiles: dict[UUID, UserProfile] = field(default_factory=dict)
    logs: list[tuple[UUID, FoodLogEntry]] = field(default_factory=list)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def list_food_logs(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[FoodLogEntry]:
        return [
            entry
            for owner, entry in self.logs
            if owner == user_id and start <= entry.logged_at < end
        ]

    def create_food_log(self, user_id: UUID, entry: FoodLogEntry) -> FoodLogEntry:
        stored = replace(entry, id=uuid4())
        self.logs.append((user_id, stored))
        return stored

    def add_coins(self, user_id: UUID, amount: int) -> None:
        profile = self.profiles[user_id]
        self.profiles[user_id] = replace(profile, coins=profile.coins + amount)


@dataclass
class FakeFoodCatalog(FoodCatalog):
    foods: list[FoodItem] = field(default_factory=list)
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str, limit: int = 25) -> list[FoodItem]:
        self.queries.append(query)
        return self.foods[:limit]

    async def get_food(self, food_id: str) -> FoodItem | None:
        for food in self.foods:
            if food.id == food_id:
                return food
        return None


class FailingFoodCatalog(FoodCatalog):
    async def search(self, query: str, limit: int = 25) -> list[FoodItem]:
        raise RuntimeError("catalog offline")

    async def get_food(self, food_id: str) -> FoodItem | None:
        raise RuntimeError("catalog offline")


class UnavailableKeyValueStore(KeyValueStore):
    """Key-value store whose backend is unreachable."""

    def get(self, key: str) -> str | None:
        raise ConnectionError("kv store unavailable")

    def set(self, key: str, value: str) -> None:
        raise ConnectionError("kv store unavailable")

    def delete(self, key: str) -> None:
        raise ConnectionError("kv store unavailable")


def make_food(  # noqa: PLR0913
    food_id: str,
    name: str,
    calories: float,
    protein: float,
    *,
    carbs: float = 0.0,
    fat: float = 0.0,
    category: str = "Protein",
    verified: bool = True,
) -> FoodItem:
    return FoodItem(
        id=food_id,
        name=name,
        category=category,
        is_verified=verified,
        serving_size=100.0,
        serving_unit="g",
        macros=MacroProfile(
            calories=calories, protein_g=protein, fat_g=fat, carbs_g=carbs
        ),
    )


def make_profile(**overrides: object) -> UserProfile:
    values: dict[str, object] = {
        "user_id": USER_ID,
        "display_name": "Alex Morgan",
        "daily_target": TARGET,
        "current_streak": 2,
        "longest_streak": 5,
        "coins": 100,
    }
    values.update(overrides)
    return UserProfile(**values)  # type: ignore[arg-type]


def make_log(
    name: str, calories: float, protein: float, logged_at: datetime
) -> FoodLogEntry:
    return FoodLogEntry(
        food_name=name,
        macros=MacroProfile(
            calories=calories, protein_g=protein, fat_g=0.0, carbs_g=0.0
        ),
        logged_at=logged_at,
    )


@dataclass
class CoachHarness:
    service: CoachService
    generation: FakeGenerationClient
    store: KeyValueStore
    repository: InMemoryUserStateRepository
    catalog: FakeFoodCatalog
    clock: FakeClock
    user_state: UserStateService


def build_coach(  # noqa: PLR0913
    replies: list[object] | None = None,
    *,
    now: datetime = DEFAULT_NOW,
    profile: UserProfile | None = None,
    logs: list[FoodLogEntry] | None = None,
    foods: list[FoodItem] | None = None,
    store: KeyValueStore | None = None,
) -> CoachHarness:
    clock = FakeClock(now)
    store = store if store is not None else InMemoryKeyValueStore()
    repository = InMemoryUserStateRepository(
        profiles={USER_ID: profile or make_profile()},
        logs=[(USER_ID, entry) for entry in logs or []],
    )
    user_state = UserStateService(repository=repository, user_id=USER_ID, clock=clock)
    cache = ResponseCache(store=store, clock=clock)
    user_state.on_food_logged.append(cache.clear)
    catalog = FakeFoodCatalog(foods=list(foods or []))
    generation = FakeGenerationClient(replies=list(replies or []))
    service = CoachService(
        generation_client=generation,
        context_builder=ContextSnapshotBuilder(
            user_state=user_state, store=store, clock=clock
        ),
        quota=QuotaTracker(store=store, clock=clock),
        cache=cache,
        tools=ToolExecutor(
            catalog=catalog, user_state=user_state, food_logger=user_state, clock=clock
        ),
        request_timeout_seconds=0.5,
    )
    return CoachHarness(
        service=service,
        generation=generation,
        store=store,
        repository=repository,
        catalog=catalog,
        clock=clock,
        user_state=user_state,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
        coach_user_id=USER_ID,
    )


@pytest.fixture
def harness() -> CoachHarness:
    return build_coach(
        foods=[
            make_food("usda-171077", "Chicken Breast", 165, 31, fat=3.6),
            make_food("usda-175167", "Salmon (Atlantic)", 208, 20.4, fat=13.4),
        ]
    )


@pytest.fixture
def container(settings: Settings, harness: CoachHarness) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        user_state_service=harness.user_state,
        coach_service=harness.service,
        close_resources=close_resources,
    )
