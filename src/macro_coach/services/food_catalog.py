"""Food lookup port used by the coach tools."""

from typing import Protocol

from macro_coach.domain.nutrition import FoodItem


class FoodCatalog(Protocol):
    """Interface for a searchable food data source."""

    async def search(self, query: str, limit: int = 25) -> list[FoodItem]:
        """Return candidate foods for a free-text query."""

    async def get_food(self, food_id: str) -> FoodItem | None:
        """Return a single food by id, if known."""
