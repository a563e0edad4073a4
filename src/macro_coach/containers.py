"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from macro_coach.adapters.fdc_food_catalog import FdcFoodCatalog
from macro_coach.adapters.openai_generation_client import OpenAIGenerationClient
from macro_coach.adapters.static_food_catalog import StaticFoodCatalog
from macro_coach.adapters.supabase_kv_store import SupabaseKeyValueStore
from macro_coach.adapters.supabase_user_state_repository import (
    SupabaseUserStateRepository,
)
from macro_coach.config import Settings
from macro_coach.services.coach import CoachService
from macro_coach.services.context import ContextSnapshotBuilder
from macro_coach.services.food_catalog import FoodCatalog
from macro_coach.services.quota import QuotaTracker
from macro_coach.services.response_cache import ResponseCache
from macro_coach.services.tools import ToolExecutor
from macro_coach.services.user_state import UserStateService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_state_service: UserStateService
    coach_service: CoachService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    store = SupabaseKeyValueStore(supabase_client)
    user_state_service = UserStateService(
        repository=SupabaseUserStateRepository(supabase_client),
        user_id=resolved_settings.coach_user_id,
        timezone_name=resolved_settings.coach_timezone,
    )
    cache = ResponseCache(
        store=store,
        ttl=timedelta(minutes=resolved_settings.coach_cache_ttl_minutes),
    )
    # Logged food changes every category's context.
    user_state_service.on_food_logged.append(cache.clear)

    fdc_catalog: FdcFoodCatalog | None = None
    catalog: FoodCatalog
    if resolved_settings.fdc_api_key:
        fdc_catalog = FdcFoodCatalog.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
        )
        catalog = fdc_catalog
    else:
        catalog = StaticFoodCatalog()

    coach_service = CoachService(
        generation_client=OpenAIGenerationClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        ),
        context_builder=ContextSnapshotBuilder(
            user_state=user_state_service,
            store=store,
            timezone_name=resolved_settings.coach_timezone,
        ),
        quota=QuotaTracker(
            store=store,
            max_calls_per_hour=resolved_settings.coach_max_calls_per_hour,
            max_calls_per_day=resolved_settings.coach_max_calls_per_day,
            min_call_interval=timedelta(
                seconds=resolved_settings.coach_min_call_interval_seconds
            ),
        ),
        cache=cache,
        tools=ToolExecutor(
            catalog=catalog,
            user_state=user_state_service,
            food_logger=user_state_service,
            timezone_name=resolved_settings.coach_timezone,
        ),
        max_tool_depth=resolved_settings.coach_max_tool_depth,
        request_timeout_seconds=resolved_settings.coach_request_timeout_seconds,
    )

    async def close_resources() -> None:
        if fdc_catalog is not None:
            await fdc_catalog.close()

    return AppContainer(
        settings=resolved_settings,
        user_state_service=user_state_service,
        coach_service=coach_service,
        close_resources=close_resources,
    )
