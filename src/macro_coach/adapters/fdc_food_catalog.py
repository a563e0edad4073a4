"""USDA FoodData Central food catalog."""

import logging
from dataclasses import dataclass

import httpx

from macro_coach.domain.nutrition import FoodItem, MacroProfile, Micronutrient
from macro_coach.services.food_catalog import FoodCatalog

FOOD_ID_PREFIX = "fdc-"
VERIFIED_DATA_TYPES = frozenset({"Foundation", "SR Legacy", "Survey (FNDDS)"})
# FDC needs a search term; filter-only searches browse whole foods instead.
DEFAULT_SEARCH_QUERY = "raw"
DEFAULT_SEARCH_DATA_TYPES = ("Foundation", "SR Legacy")

_MACRO_NUTRIENT_IDS = {
    1008: "calories",
    1003: "protein",
    1004: "fat",
    1005: "carbs",
}
_MINERALS = frozenset(
    {
        "calcium",
        "iron",
        "magnesium",
        "phosphorus",
        "potassium",
        "sodium",
        "zinc",
        "copper",
        "selenium",
        "manganese",
    }
)

_logger = logging.getLogger(__name__)


@dataclass
class FdcFoodCatalog(FoodCatalog):
    """HTTPX-backed catalog over the FDC search and food endpoints."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "FdcFoodCatalog":
        """Create a catalog with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search(self, query: str, limit: int = 25) -> list[FoodItem]:
        """Search foods by free text.

        A blank query browses raw Foundation and SR Legacy foods so that
        filter-only searches still get candidates to rank.
        """
        body: dict[str, object] = {"query": query.strip(), "pageSize": limit}
        if not body["query"]:
            body["query"] = DEFAULT_SEARCH_QUERY
            body["dataType"] = list(DEFAULT_SEARCH_DATA_TYPES)
        response = await self.http_client.post(
            f"{self.base_url}/foods/search",
            params={"api_key": self.api_key},
            json=body,
            timeout=15,
        )
        response.raise_for_status()
        foods = response.json().get("foods", [])
        _logger.info("FDC search: query=%s results=%s", body["query"], len(foods))
        return [food_from_payload(food) for food in foods if "fdcId" in food]

    async def get_food(self, food_id: str) -> FoodItem | None:
        """Fetch a food by its catalog id, e.g. ``fdc-171077``."""
        fdc_id = food_id.removeprefix(FOOD_ID_PREFIX)
        if not food_id.startswith(FOOD_ID_PREFIX) or not fdc_id.isdigit():
            return None
        response = await self.http_client.get(
            f"{self.base_url}/food/{fdc_id}",
            params={"api_key": self.api_key},
            timeout=15,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return food_from_payload(response.json())

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def food_from_payload(payload: dict[str, object]) -> FoodItem:
    """Map an FDC search hit or food document to a catalog item.

    FDC reports nutrient amounts per 100 g for every data type.
    """
    macros = {"calories": 0.0, "protein": 0.0, "fat": 0.0, "carbs": 0.0}
    micronutrients: list[Micronutrient] = []
    for nutrient in payload.get("foodNutrients") or []:
        nutrient_id, name, unit, amount = _nutrient_fields(nutrient)
        if amount is None:
            continue
        if nutrient_id in _MACRO_NUTRIENT_IDS:
            macros[_MACRO_NUTRIENT_IDS[nutrient_id]] = amount
            continue
        category = _micronutrient_category(name)
        if category is not None:
            micronutrients.append(
                Micronutrient(name=name, amount=amount, unit=unit, category=category)
            )
    category = payload.get("foodCategory")
    if isinstance(category, dict):
        category = category.get("description")
    return FoodItem(
        id=f"{FOOD_ID_PREFIX}{payload['fdcId']}",
        name=str(payload.get("description", "")),
        category=category if isinstance(category, str) else None,
        is_verified=payload.get("dataType") in VERIFIED_DATA_TYPES,
        serving_size=100.0,
        serving_unit="g",
        macros=MacroProfile(
            calories=macros["calories"],
            protein_g=macros["protein"],
            fat_g=macros["fat"],
            carbs_g=macros["carbs"],
        ),
        serving_description=payload.get("householdServingFullText"),
        source="usda",
        micronutrients=micronutrients,
    )


def _nutrient_fields(
    nutrient: dict[str, object],
) -> tuple[int | None, str, str, float | None]:
    # Search hits are flat; food documents nest the nutrient definition.
    info = nutrient.get("nutrient") or {}
    nutrient_id = info.get("id") or nutrient.get("nutrientId")
    name = info.get("name") or nutrient.get("nutrientName") or ""
    unit = info.get("unitName") or nutrient.get("unitName") or ""
    amount = nutrient.get("amount", nutrient.get("value"))
    return (
        nutrient_id,
        str(name),
        str(unit).lower(),
        float(amount) if amount is not None else None,
    )


def _micronutrient_category(name: str) -> str | None:
    lowered = name.lower()
    if lowered.startswith("vitamin") or lowered in {"folate, total", "niacin"}:
        return "vitamin"
    base = lowered.split(",")[0].strip()
    if base in _MINERALS:
        return "mineral"
    return None
