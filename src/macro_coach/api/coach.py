"""Coach API endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from macro_coach.api.models import ChatRequest  # noqa: TC001
from macro_coach.domain.context import MessageCategory  # noqa: TC001

if TYPE_CHECKING:
    from macro_coach.containers import AppContainer

router = APIRouter(prefix="/coach", tags=["coach"])


@router.post("/chat")
async def chat(payload: ChatRequest, request: Request) -> dict[str, object]:
    """Answer a chat message."""
    container: AppContainer = request.app.state.container
    response = await container.coach_service.chat(
        payload.message, [turn.to_turn() for turn in payload.history]
    )
    return asdict(response)


@router.get("/greeting")
async def greeting(request: Request) -> dict[str, object]:
    """Return the dashboard greeting."""
    container: AppContainer = request.app.state.container
    result = await container.coach_service.greeting()
    return result.model_dump()


@router.get("/messages/{category}")
async def message(category: MessageCategory, request: Request) -> dict[str, object]:
    """Return the dashboard message for a category."""
    container: AppContainer = request.app.state.container
    text = await container.coach_service.message(category)
    return {"category": category.value, "message": text}


@router.get("/quota")
async def quota(request: Request) -> dict[str, object]:
    """Return remaining calls in the current windows."""
    container: AppContainer = request.app.state.container
    return asdict(container.coach_service.quota_stats())


@router.post("/cache/clear")
async def clear_cache(
    request: Request, category: MessageCategory | None = None
) -> dict[str, str]:
    """Drop cached dashboard messages."""
    container: AppContainer = request.app.state.container
    container.coach_service.cache.clear(category)
    return {"status": "ok"}


@router.get("/suggestions")
async def suggestions(
    request: Request,
    max_calories: float | None = None,
    min_protein: float | None = None,
    category: str | None = None,
) -> dict[str, object]:
    """Return food suggestions without a generation call."""
    container: AppContainer = request.app.state.container
    foods = await container.coach_service.quick_suggest(
        max_calories=max_calories, min_protein=min_protein, category=category
    )
    return {"foods": [asdict(food) for food in foods]}
