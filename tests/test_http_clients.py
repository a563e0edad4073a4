"""Tests for HTTP-based adapters."""

import asyncio
import json
from types import SimpleNamespace

import httpx

from macro_coach.adapters.fdc_food_catalog import (
    DEFAULT_SEARCH_QUERY,
    FdcFoodCatalog,
)
from macro_coach.adapters.openai_generation_client import (
    OpenAIGenerationClient,
    build_input_items,
)
from macro_coach.domain.coach import ChatTurn, ToolCall, ToolResult
from macro_coach.services.tools import TOOL_DESCRIPTORS, ToolExecutor
from macro_coach.services.user_state import UserStateService
from tests.conftest import (
    USER_ID,
    FakeClock,
    InMemoryUserStateRepository,
    make_profile,
)


class _FakeResponses:
    def __init__(self, response: SimpleNamespace) -> None:
        self.response = response
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return self.response


class _FakeOpenAI:
    def __init__(self, response: SimpleNamespace) -> None:
        self.responses = _FakeResponses(response)


def test_openai_generation_client_returns_text() -> None:
    fake = _FakeOpenAI(SimpleNamespace(output=[], output_text="Eat more protein."))
    client = OpenAIGenerationClient(
        client=fake, model="gpt-5.2", reasoning_effort="low"
    )

    result = asyncio.run(
        client.generate(
            system_prompt="Be brief.",
            conversation=[ChatTurn.user("hi")],
            tools=TOOL_DESCRIPTORS,
        )
    )

    assert result == {"text": "Eat more protein."}
    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["instructions"] == "Be brief."
    assert payload["reasoning"] == {"effort": "low"}
    assert payload["tools"][0]["type"] == "function"
    assert payload["tools"][0]["name"] == "search_food_database"


def test_openai_generation_client_returns_tool_call() -> None:
    call = SimpleNamespace(
        type="function_call",
        name="search_food_database",
        arguments=json.dumps({"minProtein": 25}),
    )
    fake = _FakeOpenAI(SimpleNamespace(output=[call], output_text=""))
    client = OpenAIGenerationClient(client=fake, model="gpt-5.2")

    result = asyncio.run(
        client.generate(system_prompt="", conversation=[], tools=[])
    )

    assert result == {
        "tool_call": {"name": "search_food_database", "arguments": {"minProtein": 25}}
    }
    assert "tools" not in (fake.responses.last_payload or {})


def test_openai_generation_client_keeps_malformed_arguments() -> None:
    call = SimpleNamespace(
        type="function_call",
        name="search_food_database",
        arguments='{"minProtein": 20',
    )
    fake = _FakeOpenAI(SimpleNamespace(output=[call], output_text=""))
    client = OpenAIGenerationClient(client=fake, model="gpt-5.2")

    result = asyncio.run(
        client.generate(system_prompt="", conversation=[], tools=[])
    )

    assert result == {
        "tool_call": {
            "name": "search_food_database",
            "arguments": '{"minProtein": 20',
        }
    }


def test_input_items_send_raw_arguments_unchanged() -> None:
    call = ToolCall(name="search_food_database", arguments='{"minProtein": 20')

    items = build_input_items([ChatTurn.tool_request(call)])

    assert items[0]["arguments"] == '{"minProtein": 20'


def test_input_items_pair_tool_calls_with_outputs() -> None:
    call = ToolCall(name="get_user_status", arguments={})
    items = build_input_items(
        [
            ChatTurn.user("status?"),
            ChatTurn.tool_request(call),
            ChatTurn.tool_response("get_user_status", ToolResult.ok({"a": 1})),
        ]
    )

    assert items[0] == {"role": "user", "content": "status?"}
    assert items[1]["type"] == "function_call"
    assert items[2]["type"] == "function_call_output"
    assert items[1]["call_id"] == items[2]["call_id"] == "call_1"


def _fdc_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/foods/search"):
        body = json.loads(request.content)
        assert body == {"query": "chicken", "pageSize": 25}
        return httpx.Response(
            200,
            json={
                "foods": [
                    {
                        "fdcId": 171077,
                        "description": "Chicken, broiler, breast, raw",
                        "dataType": "SR Legacy",
                        "foodCategory": "Poultry Products",
                        "foodNutrients": [
                            {"nutrientId": 1008, "value": 120},
                            {"nutrientId": 1003, "value": 22.5},
                            {"nutrientId": 1004, "value": 2.6},
                            {"nutrientId": 1005, "value": 0},
                            {
                                "nutrientId": 1092,
                                "nutrientName": "Potassium, K",
                                "unitName": "MG",
                                "value": 334,
                            },
                        ],
                    },
                    {
                        "fdcId": 2000001,
                        "description": "Chicken nuggets",
                        "dataType": "Branded",
                        "foodNutrients": [],
                    },
                ]
            },
        )
    if request.url.path.endswith("/food/171077"):
        return httpx.Response(
            200,
            json={
                "fdcId": 171077,
                "description": "Chicken, broiler, breast, raw",
                "dataType": "SR Legacy",
                "foodCategory": {"description": "Poultry Products"},
                "foodNutrients": [
                    {"nutrient": {"id": 1008, "name": "Energy"}, "amount": 120},
                    {
                        "nutrient": {"id": 1162, "name": "Vitamin C", "unitName": "mg"},
                        "amount": 1.2,
                    },
                ],
            },
        )
    return httpx.Response(404, json={})


def test_fdc_catalog_search_maps_foods() -> None:
    transport = httpx.MockTransport(_fdc_handler)
    catalog = FdcFoodCatalog(
        api_key="key",
        base_url="https://fdc.example",
        http_client=httpx.AsyncClient(transport=transport),
    )

    foods = asyncio.run(catalog.search("chicken"))

    assert [food.id for food in foods] == ["fdc-171077", "fdc-2000001"]
    chicken, nuggets = foods
    assert chicken.is_verified is True
    assert nuggets.is_verified is False
    assert chicken.category == "Poultry Products"
    assert chicken.macros.protein_g == 22.5
    assert chicken.micronutrients[0].category == "mineral"
    assert chicken.micronutrients[0].unit == "mg"


def test_fdc_catalog_get_food_and_missing_ids() -> None:
    transport = httpx.MockTransport(_fdc_handler)
    catalog = FdcFoodCatalog(
        api_key="key",
        base_url="https://fdc.example",
        http_client=httpx.AsyncClient(transport=transport),
    )

    food = asyncio.run(catalog.get_food("fdc-171077"))
    missing = asyncio.run(catalog.get_food("fdc-999"))
    foreign = asyncio.run(catalog.get_food("usda-171077"))
    asyncio.run(catalog.close())

    assert food is not None
    assert food.category == "Poultry Products"
    assert food.macros.calories == 120
    assert food.micronutrients[0].name == "Vitamin C"
    assert missing is None
    assert foreign is None


def test_fdc_filter_only_search_uses_default_query() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "foods": [
                    {
                        "fdcId": 171077,
                        "description": "Chicken, broiler, breast, raw",
                        "dataType": "SR Legacy",
                        "foodCategory": "Poultry Products",
                        "foodNutrients": [
                            {"nutrientId": 1008, "value": 120},
                            {"nutrientId": 1003, "value": 22.5},
                        ],
                    },
                    {
                        "fdcId": 169705,
                        "description": "Oats, raw",
                        "dataType": "SR Legacy",
                        "foodNutrients": [
                            {"nutrientId": 1008, "value": 389},
                            {"nutrientId": 1003, "value": 16.9},
                        ],
                    },
                ]
            },
        )

    catalog = FdcFoodCatalog(
        api_key="key",
        base_url="https://fdc.example",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    clock = FakeClock()
    repository = InMemoryUserStateRepository(profiles={USER_ID: make_profile()})
    user_state = UserStateService(repository=repository, user_id=USER_ID, clock=clock)
    executor = ToolExecutor(
        catalog=catalog, user_state=user_state, food_logger=user_state, clock=clock
    )

    result = asyncio.run(
        executor.execute("search_food_database", {"minProtein": 20})
    )

    assert bodies == [
        {
            "query": DEFAULT_SEARCH_QUERY,
            "pageSize": 25,
            "dataType": ["Foundation", "SR Legacy"],
        }
    ]
    assert result.success is True
    assert result.data is not None
    assert [food["name"] for food in result.data["foods"]] == [
        "Chicken, broiler, breast, raw"
    ]
