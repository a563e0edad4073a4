"""Tool registry and executor backing the coach's function calls."""

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from macro_coach.domain.coach import ToolDescriptor, ToolResult
from macro_coach.domain.context import TimeOfDay
from macro_coach.domain.nutrition import FoodItem
from macro_coach.services.food_catalog import FoodCatalog
from macro_coach.services.user_state import FoodLogger, UserStateSource

SEARCH_RESULT_LIMIT = 5
SEARCH_CANDIDATE_LIMIT = 25
DEFAULT_PORTION_GRAMS = 100.0

_logger = logging.getLogger(__name__)


class ToolName(StrEnum):
    """Closed set of tools the model may call."""

    SEARCH_FOOD_DATABASE = "search_food_database"
    GET_USER_STATUS = "get_user_status"
    LOG_VERIFIED_FOOD = "log_verified_food"
    GET_FOOD_DETAILS = "get_food_details"
    SEARCH_VERIFIED_FITNESS_KNOWLEDGE = "search_verified_fitness_knowledge"


_FAILURE_MESSAGES: dict[ToolName, str] = {
    ToolName.SEARCH_FOOD_DATABASE: "Failed to search food database",
    ToolName.GET_USER_STATUS: "Failed to get user status",
    ToolName.LOG_VERIFIED_FOOD: "Failed to log food",
    ToolName.GET_FOOD_DETAILS: "Failed to get food details",
    ToolName.SEARCH_VERIFIED_FITNESS_KNOWLEDGE: "Failed to search knowledge base",
}


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SearchFoodArgs(_ToolArgs):
    """Filters for the food search tool."""

    query: str | None = Field(default=None, description="Food name search term")
    min_protein: float | None = Field(
        default=None, alias="minProtein", description="Minimum protein in grams"
    )
    max_calories: float | None = Field(
        default=None, alias="maxCalories", description="Maximum calories"
    )
    max_carbs: float | None = Field(
        default=None, alias="maxCarbs", description="Maximum carbs in grams"
    )
    max_fat: float | None = Field(
        default=None, alias="maxFat", description="Maximum fat in grams"
    )
    category: str | None = Field(
        default=None, description="Food category, e.g. Protein or Vegetable"
    )
    verified_only: bool = Field(
        default=True,
        alias="verifiedOnly",
        description="Only return verified foods",
    )

    def matches(self, food: FoodItem) -> bool:
        """Return True when the food passes every filter."""
        macros = food.macros
        if self.verified_only and not food.is_verified:
            return False
        if self.min_protein is not None and macros.protein_g < self.min_protein:
            return False
        if self.max_calories is not None and macros.calories > self.max_calories:
            return False
        if self.max_carbs is not None and macros.carbs_g > self.max_carbs:
            return False
        if self.max_fat is not None and macros.fat_g > self.max_fat:
            return False
        if self.category and (food.category or "").lower() != self.category.lower():
            return False
        return True


class UserStatusArgs(_ToolArgs):
    """The status tool takes no arguments."""


class LogFoodArgs(_ToolArgs):
    """Arguments for logging a catalog food."""

    food_id: str = Field(alias="foodId", min_length=1, description="Food id")
    portion_grams: float = Field(
        default=DEFAULT_PORTION_GRAMS,
        alias="portionGrams",
        gt=0,
        description="Portion size in grams",
    )
    meal_slot: Literal["breakfast", "lunch", "dinner", "snacks"] | None = Field(
        default=None, alias="mealSlot", description="Meal slot"
    )


class FoodDetailsArgs(_ToolArgs):
    """Arguments for the food details tool."""

    food_id: str = Field(alias="foodId", min_length=1, description="Food id")


class KnowledgeArgs(_ToolArgs):
    """Arguments for the knowledge lookup tool."""

    query: str = Field(min_length=1, description="Compound or topic to look up")
    compound_name: str | None = Field(default=None, alias="compoundName")
    topic: (
        Literal[
            "mechanism",
            "clinical_trials",
            "safety",
            "pharmacokinetics",
            "interactions",
        ]
        | None
    ) = None


TOOL_DESCRIPTORS: list[ToolDescriptor] = [
    ToolDescriptor(
        name=ToolName.SEARCH_FOOD_DATABASE,
        description=(
            "Search the verified food database for items matching macro filters. "
            "Use it for food suggestions instead of guessing nutrition values."
        ),
        parameters=SearchFoodArgs.model_json_schema(by_alias=True),
    ),
    ToolDescriptor(
        name=ToolName.GET_USER_STATUS,
        description=(
            "Get the user's remaining macros, streak and today's progress "
            "before making personalized recommendations."
        ),
        parameters=UserStatusArgs.model_json_schema(by_alias=True),
    ),
    ToolDescriptor(
        name=ToolName.LOG_VERIFIED_FOOD,
        description=(
            "Log a food from the database to the user's diary. "
            "Only call after the user confirms."
        ),
        parameters=LogFoodArgs.model_json_schema(by_alias=True),
    ),
    ToolDescriptor(
        name=ToolName.GET_FOOD_DETAILS,
        description="Get full nutrition details, including micronutrients, for a food.",
        parameters=FoodDetailsArgs.model_json_schema(by_alias=True),
    ),
    ToolDescriptor(
        name=ToolName.SEARCH_VERIFIED_FITNESS_KNOWLEDGE,
        description=(
            "Search the verified fitness knowledge base before answering questions "
            "about supplements or research compounds."
        ),
        parameters=KnowledgeArgs.model_json_schema(by_alias=True),
    ),
]

ToolHandler = Callable[[dict[str, object]], Awaitable[ToolResult]]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ToolExecutor:
    """Dispatches tool calls to local data capabilities."""

    catalog: FoodCatalog
    user_state: UserStateSource
    food_logger: FoodLogger
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = field(default=_utc_now)
    _handlers: dict[ToolName, ToolHandler] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._handlers = {
            ToolName.SEARCH_FOOD_DATABASE: self._search_food_database,
            ToolName.GET_USER_STATUS: self._get_user_status,
            ToolName.LOG_VERIFIED_FOOD: self._log_verified_food,
            ToolName.GET_FOOD_DETAILS: self._get_food_details,
            ToolName.SEARCH_VERIFIED_FITNESS_KNOWLEDGE: self._search_knowledge,
        }
        missing = set(ToolName) - set(self._handlers)
        if missing:
            raise RuntimeError(f"Unregistered tools: {sorted(missing)}")

    @property
    def descriptors(self) -> list[ToolDescriptor]:
        """Tool declarations to advertise to the model."""
        return TOOL_DESCRIPTORS

    async def execute(self, tool_name: str, arguments: object = None) -> ToolResult:
        """Run a tool and return its result envelope; never raises."""
        try:
            name = ToolName(tool_name)
        except ValueError:
            return ToolResult.failure(f"Unknown tool: {tool_name}")
        if arguments is None:
            arguments = {}
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments or "{}")
            except json.JSONDecodeError:
                return ToolResult.failure(
                    f"Invalid arguments for {name}: malformed JSON"
                )
        if not isinstance(arguments, Mapping):
            return ToolResult.failure(
                f"Invalid arguments for {name}: expected an object"
            )
        try:
            return await self._handlers[name](dict(arguments))
        except ValidationError as exc:
            return ToolResult.failure(
                f"Invalid arguments for {name}: {_describe_errors(exc)}"
            )
        except Exception:
            _logger.exception("Tool %s failed", name)
            return ToolResult.failure(_FAILURE_MESSAGES[name])

    async def search_foods(self, args: SearchFoodArgs) -> list[FoodItem]:
        """Apply filters and rank candidates by protein density."""
        query = args.query or args.category or ""
        candidates = await self.catalog.search(query, limit=SEARCH_CANDIDATE_LIMIT)
        matches = [food for food in candidates if args.matches(food)]
        ranked = sorted(matches, key=lambda food: food.protein_density, reverse=True)
        return ranked[:SEARCH_RESULT_LIMIT]

    async def _search_food_database(self, arguments: dict[str, object]) -> ToolResult:
        args = SearchFoodArgs.model_validate(arguments)
        foods = await self.search_foods(args)
        return ToolResult.ok(
            {
                "count": len(foods),
                "foods": [_food_payload(food) for food in foods],
                "searchCriteria": args.model_dump(by_alias=True, exclude_none=True),
            }
        )

    async def _get_user_status(self, arguments: dict[str, object]) -> ToolResult:
        UserStatusArgs.model_validate(arguments)
        state = self.user_state.get_state()
        intake = state.intake
        remaining = state.remaining
        target = state.profile.daily_target
        hour = self.clock().astimezone(ZoneInfo(self.timezone_name)).hour
        return ToolResult.ok(
            {
                "caloriesConsumed": intake.calories,
                "caloriesRemaining": remaining.calories,
                "proteinConsumed": intake.protein_g,
                "proteinRemaining": remaining.protein_g,
                "carbsConsumed": intake.carbs_g,
                "carbsRemaining": remaining.carbs_g,
                "fatsConsumed": intake.fat_g,
                "fatsRemaining": remaining.fat_g,
                "todayProgress": state.progress_percent,
                "currentStreak": state.profile.current_streak,
                "macroCoins": state.profile.coins,
                "timeOfDay": TimeOfDay.from_hour(hour).value,
                "dailyTarget": {
                    "calories": target.calories,
                    "protein": target.protein_g,
                    "carbs": target.carbs_g,
                    "fats": target.fat_g,
                },
            }
        )

    async def _log_verified_food(self, arguments: dict[str, object]) -> ToolResult:
        args = LogFoodArgs.model_validate(arguments)
        food = await self.catalog.get_food(args.food_id)
        if food is None:
            return ToolResult.failure(
                f'Food with ID "{args.food_id}" not found in database'
            )
        serving = food.serving_size if food.serving_size > 0 else DEFAULT_PORTION_GRAMS
        portion = food.macros.scaled(args.portion_grams / serving)
        self.food_logger.log_food(
            name=food.name,
            macros=portion,
            meal_slot=args.meal_slot,
            food_id=food.id,
        )
        return ToolResult.ok(
            {
                "logged": True,
                "food": food.name,
                "portion": f"{args.portion_grams:g}g",
                "mealSlot": args.meal_slot or "unspecified",
                "nutrition": {
                    "calories": portion.calories,
                    "protein": portion.protein_g,
                    "carbs": portion.carbs_g,
                    "fat": portion.fat_g,
                },
            }
        )

    async def _get_food_details(self, arguments: dict[str, object]) -> ToolResult:
        args = FoodDetailsArgs.model_validate(arguments)
        food = await self.catalog.get_food(args.food_id)
        if food is None:
            return ToolResult.failure(f'Food with ID "{args.food_id}" not found')
        grouped: dict[str, list[dict[str, object]]] = {
            "vitamins": [],
            "minerals": [],
            "other": [],
        }
        for nutrient in food.micronutrients:
            bucket = {"vitamin": "vitamins", "mineral": "minerals"}.get(
                nutrient.category, "other"
            )
            grouped[bucket].append(
                {
                    "name": nutrient.name,
                    "amount": f"{nutrient.amount:g}{nutrient.unit}",
                    "dv": nutrient.daily_value_pct,
                }
            )
        return ToolResult.ok(
            {
                "id": food.id,
                "name": food.name,
                "category": food.category,
                "isVerified": food.is_verified,
                "servingSize": f"{food.serving_size:g}{food.serving_unit}",
                "servingDescription": food.serving_description,
                "macros": {
                    "calories": food.macros.calories,
                    "protein": food.macros.protein_g,
                    "carbs": food.macros.carbs_g,
                    "fat": food.macros.fat_g,
                },
                "micronutrients": grouped,
            }
        )

    async def _search_knowledge(self, arguments: dict[str, object]) -> ToolResult:
        """Answer with general guidance.

        MVP placeholder: no curated research index is wired in yet, so the
        payload carries no sources.
        """
        args = KnowledgeArgs.model_validate(arguments)
        return ToolResult.ok(
            {
                "query": args.query,
                "compoundName": args.compound_name,
                "topic": args.topic or "general",
                "message": (
                    "The research database is still being curated. "
                    "Providing general guidance only."
                ),
                "disclaimer": (
                    "Always consult peer-reviewed literature and qualified "
                    "healthcare professionals."
                ),
                "sources": [],
            }
        )


def _food_payload(food: FoodItem) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "category": food.category,
        "isVerified": food.is_verified,
        "servingSize": f"{food.serving_size:g}{food.serving_unit}",
        "servingDescription": food.serving_description,
        "calories": food.macros.calories,
        "protein": food.macros.protein_g,
        "carbs": food.macros.carbs_g,
        "fat": food.macros.fat_g,
        "proteinDensity": (
            f"{food.protein_density * 10:.1f}g per 10cal"
            if food.macros.calories > 0
            else "N/A"
        ),
    }


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
