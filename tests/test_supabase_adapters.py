"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from macro_coach.adapters.supabase_kv_store import SupabaseKeyValueStore
from macro_coach.adapters.supabase_user_state_repository import (
    SupabaseUserStateRepository,
)
from macro_coach.domain.nutrition import MacroProfile
from macro_coach.domain.user_state import FoodLogEntry
from macro_coach.services.context import DEFAULT_TARGET


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def _start(self, action: str) -> "FakeTable":
        self._action = action
        self.actions.append(action)
        return self

    def select(self, *_args) -> "FakeTable":
        return self._start("select")

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("insert")

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("update")

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = ""
    ) -> "FakeTable":
        self.last_payload = payload
        self.on_conflict = on_conflict
        return self._start("upsert")

    def delete(self) -> "FakeTable":
        return self._start("delete")

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_kv_store_get_set_delete() -> None:
    client = FakeSupabaseClient()
    table = client.table("kv_store")
    table.queue("select", [{"key": "ai_last_open_date", "value": "2026-03-10"}])
    store = SupabaseKeyValueStore(client)

    value = store.get("ai_last_open_date")
    missing = store.get("ai_rate_limit_state")
    store.set("ai_rate_limit_state", "{}")
    upserted = table.last_payload
    store.delete("ai_message_cache_insight")

    assert value == "2026-03-10"
    assert missing is None
    assert isinstance(upserted, dict)
    assert upserted["key"] == "ai_rate_limit_state"
    assert upserted["value"] == "{}"
    assert table.on_conflict == "key"
    assert table.actions[-1] == "delete"
    assert table.last_filters[-1] == ("key", "ai_message_cache_insight")


def test_user_state_repository_reads_profile_with_default_targets() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    client.table("profiles").queue(
        "select",
        [
            {
                "id": str(user_id),
                "display_name": "Alex Morgan",
                "target_calories": 2200,
                "target_protein_g": None,
                "current_streak": 4,
                "coins": 30,
                "sleep_minutes": 420,
            }
        ],
    )
    repository = SupabaseUserStateRepository(client)

    profile = repository.get_profile(user_id)

    assert profile is not None
    assert profile.daily_target.calories == 2200
    assert profile.daily_target.protein_g == DEFAULT_TARGET.protein_g
    assert profile.current_streak == 4
    assert profile.longest_streak == 0
    assert profile.sleep_minutes == 420
    assert repository.get_profile(uuid4()) is None


def test_user_state_repository_food_logs_roundtrip() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    log_id = str(uuid4())
    logged_at = datetime(2026, 3, 10, 12, tzinfo=UTC)
    row = {
        "id": log_id,
        "food_name": "Chicken Breast",
        "food_id": "usda-171077",
        "meal_slot": "lunch",
        "logged_at": logged_at.isoformat(),
        "calories": 248,
        "protein_g": 46.5,
        "fat_g": 5.4,
        "carbs_g": 0,
    }
    table = client.table("food_logs")
    table.queue("insert", [row])
    table.queue("select", [row])
    repository = SupabaseUserStateRepository(client)

    created = repository.create_food_log(
        user_id,
        FoodLogEntry(
            food_name="Chicken Breast",
            macros=MacroProfile(calories=248, protein_g=46.5, fat_g=5.4, carbs_g=0),
            logged_at=logged_at,
            meal_slot="lunch",
            food_id="usda-171077",
        ),
    )
    listed = repository.list_food_logs(
        user_id, logged_at.replace(hour=0), logged_at.replace(hour=23)
    )

    assert str(created.id) == log_id
    assert table.last_payload["user_id"] == str(user_id)  # type: ignore[index]
    assert listed[0].macros.protein_g == 46.5
    assert listed[0].logged_at == logged_at
    assert ("user_id", str(user_id)) in table.last_filters


def test_user_state_repository_add_coins_increments_balance() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    profiles = client.table("profiles")
    profiles.queue("select", [{"id": str(user_id), "coins": 100}])
    repository = SupabaseUserStateRepository(client)

    repository.add_coins(user_id, 10)

    assert profiles.last_payload == {"coins": 110}
    assert profiles.last_filters[-1] == ("id", str(user_id))
