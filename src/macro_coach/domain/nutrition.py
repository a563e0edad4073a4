"""Nutrition domain models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MacroProfile:
    """Macronutrient profile for a food item or a day."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float

    def scaled(self, factor: float) -> "MacroProfile":
        """Return the profile scaled to a portion, rounded for display."""
        return MacroProfile(
            calories=round(self.calories * factor),
            protein_g=round(self.protein_g * factor, 1),
            fat_g=round(self.fat_g * factor, 1),
            carbs_g=round(self.carbs_g * factor, 1),
        )

    def __add__(self, other: "MacroProfile") -> "MacroProfile":
        return MacroProfile(
            calories=self.calories + other.calories,
            protein_g=self.protein_g + other.protein_g,
            fat_g=self.fat_g + other.fat_g,
            carbs_g=self.carbs_g + other.carbs_g,
        )


EMPTY_MACROS = MacroProfile(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Micronutrient:
    """A single micronutrient amount for a serving."""

    name: str
    amount: float
    unit: str
    category: str
    daily_value_pct: float | None = None


@dataclass(frozen=True)
class FoodItem:
    """A food entry returned by a food catalog."""

    id: str
    name: str
    category: str | None
    is_verified: bool
    serving_size: float
    serving_unit: str
    macros: MacroProfile
    serving_description: str | None = None
    source: str | None = None
    micronutrients: list[Micronutrient] = field(default_factory=list)

    @property
    def protein_density(self) -> float:
        """Protein grams per calorie, 0 for calorie-free items."""
        if self.macros.calories <= 0:
            return 0.0
        return self.macros.protein_g / self.macros.calories


@dataclass(frozen=True)
class FoodSuggestion:
    """Food surfaced to the user by the coach."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    serving_size: str | None = None
    category: str | None = None
    is_verified: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "FoodSuggestion":
        """Build a suggestion from a search tool result entry."""
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            calories=_to_float(payload.get("calories")),
            protein=_to_float(payload.get("protein")),
            carbs=_to_float(payload.get("carbs")),
            fat=_to_float(payload.get("fat")),
            serving_size=(
                str(payload["servingSize"]) if payload.get("servingSize") else None
            ),
            category=(str(payload["category"]) if payload.get("category") else None),
            is_verified=bool(payload.get("isVerified", False)),
        )


def _to_float(value: object) -> float:
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0
