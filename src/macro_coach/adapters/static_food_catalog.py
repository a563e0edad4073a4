"""Bundled catalog of verified foods used when FDC is not configured."""

from dataclasses import dataclass, field

from macro_coach.domain.nutrition import FoodItem, MacroProfile, Micronutrient
from macro_coach.services.food_catalog import FoodCatalog


def _food(  # noqa: PLR0913
    food_id: str,
    name: str,
    category: str,
    serving_description: str,
    macros: tuple[float, float, float, float],
    micronutrients: list[Micronutrient],
) -> FoodItem:
    calories, protein, carbs, fat = macros
    return FoodItem(
        id=food_id,
        name=name,
        category=category,
        is_verified=True,
        serving_size=100.0,
        serving_unit="g",
        macros=MacroProfile(
            calories=calories, protein_g=protein, fat_g=fat, carbs_g=carbs
        ),
        serving_description=serving_description,
        source="usda",
        micronutrients=micronutrients,
    )


VERIFIED_FOODS: list[FoodItem] = [
    _food(
        "usda-171077",
        "Chicken Breast",
        "Protein",
        "3.5 oz",
        (165, 31, 0, 3.6),
        [
            Micronutrient("Vitamin B6", 0.6, "mg", "vitamin", 35),
            Micronutrient("Niacin (B3)", 13.7, "mg", "vitamin", 86),
            Micronutrient("Selenium", 27.6, "mcg", "mineral", 50),
            Micronutrient("Phosphorus", 228, "mg", "mineral", 18),
            Micronutrient("Sodium", 74, "mg", "other", 3),
        ],
    ),
    _food(
        "usda-171705",
        "Avocado (Hass)",
        "Fruit",
        "1/2 medium",
        (160, 2, 8.5, 14.7),
        [
            Micronutrient("Vitamin K", 21, "mcg", "vitamin", 18),
            Micronutrient("Folate", 81, "mcg", "vitamin", 20),
            Micronutrient("Potassium", 485, "mg", "mineral", 10),
            Micronutrient("Copper", 0.19, "mg", "mineral", 21),
        ],
    ),
    _food(
        "usda-168462",
        "Spinach (Raw)",
        "Vegetable",
        "3 cups",
        (23, 2.9, 3.6, 0.4),
        [
            Micronutrient("Vitamin A", 469, "mcg", "vitamin", 52),
            Micronutrient("Vitamin K", 482.9, "mcg", "vitamin", 402),
            Micronutrient("Iron", 2.71, "mg", "mineral", 15),
            Micronutrient("Magnesium", 79, "mg", "mineral", 19),
        ],
    ),
    _food(
        "usda-169705",
        "Oats (Rolled)",
        "Grain",
        "1 cup dry",
        (389, 16.9, 66.3, 6.9),
        [
            Micronutrient("Thiamin (B1)", 0.76, "mg", "vitamin", 63),
            Micronutrient("Iron", 4.72, "mg", "mineral", 26),
            Micronutrient("Zinc", 3.97, "mg", "mineral", 36),
        ],
    ),
    _food(
        "usda-175167",
        "Salmon (Atlantic)",
        "Seafood",
        "3.5 oz fillet",
        (208, 20.4, 0, 13.4),
        [
            Micronutrient("Vitamin D", 11.1, "mcg", "vitamin", 56),
            Micronutrient("Vitamin B12", 3.18, "mcg", "vitamin", 133),
            Micronutrient("Selenium", 40.4, "mcg", "mineral", 73),
            Micronutrient("Omega-3 DHA", 1457, "mg", "other"),
        ],
    ),
]


@dataclass
class StaticFoodCatalog(FoodCatalog):
    """In-process catalog searched by name or category substring."""

    foods: list[FoodItem] = field(default_factory=lambda: list(VERIFIED_FOODS))

    async def search(self, query: str, limit: int = 25) -> list[FoodItem]:
        """Return foods whose name or category contains the query."""
        needle = query.strip().lower()
        if not needle:
            return self.foods[:limit]
        matches = [
            food
            for food in self.foods
            if needle in food.name.lower() or needle in (food.category or "").lower()
        ]
        # Verified first, then names starting with the query.
        matches.sort(
            key=lambda food: (
                not food.is_verified,
                not food.name.lower().startswith(needle),
            )
        )
        return matches[:limit]

    async def get_food(self, food_id: str) -> FoodItem | None:
        """Return a food by id, if bundled."""
        for food in self.foods:
            if food.id == food_id:
                return food
        return None
