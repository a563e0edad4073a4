"""Tests for the bundled food catalog."""

import asyncio

from macro_coach.adapters.static_food_catalog import StaticFoodCatalog


def test_search_matches_name_or_category() -> None:
    catalog = StaticFoodCatalog()

    by_name = asyncio.run(catalog.search("salmon"))
    by_category = asyncio.run(catalog.search("vegetable"))

    assert [food.name for food in by_name] == ["Salmon (Atlantic)"]
    assert [food.name for food in by_category] == ["Spinach (Raw)"]


def test_empty_query_returns_everything_up_to_limit() -> None:
    catalog = StaticFoodCatalog()

    assert len(asyncio.run(catalog.search(""))) == 5
    assert len(asyncio.run(catalog.search("", limit=2))) == 2


def test_get_food_by_id() -> None:
    catalog = StaticFoodCatalog()

    food = asyncio.run(catalog.get_food("usda-169705"))

    assert food is not None
    assert food.name == "Oats (Rolled)"
    assert asyncio.run(catalog.get_food("fdc-1")) is None
