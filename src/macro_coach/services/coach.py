"""Coach orchestrator combining generation, tools, quota, cache and fallbacks."""

import asyncio
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from macro_coach.domain.coach import (
    ChatTurn,
    CoachResponse,
    GenerationReply,
    Greeting,
    ToolCall,
    ToolDescriptor,
    ToolResult,
)
from macro_coach.domain.context import ContextSnapshot, MessageCategory
from macro_coach.domain.nutrition import FoodSuggestion
from macro_coach.services.context import ContextSnapshotBuilder
from macro_coach.services.fallback import (
    ISSUE_TEXT,
    NEED_SPECIFIC_TEXT,
    category_fallback,
    chat_fallback,
    summarize_tool_result,
)
from macro_coach.services.generation import GenerationClient
from macro_coach.services.prompts import (
    MESSAGE_SYSTEM_PROMPT,
    build_chat_system_prompt,
    build_message_prompt,
)
from macro_coach.services.quota import DenialReason, QuotaStats, QuotaTracker
from macro_coach.services.response_cache import ResponseCache
from macro_coach.services.tools import ToolExecutor, ToolName

_logger = logging.getLogger(__name__)


class OrchestrationError(Exception):
    """Base class for conditions that route a request to a fallback."""


class AdmissionDenied(OrchestrationError):
    """The quota tracker refused a remote call."""

    def __init__(self, reason: DenialReason | None) -> None:
        super().__init__(f"remote call not admitted: {reason}")
        self.reason = reason


class RemoteCallFailed(OrchestrationError):
    """The generation endpoint failed, timed out or replied unusably."""


class ToolLoopInterrupted(OrchestrationError):
    """The endpoint failed after at least one tool result was produced."""

    def __init__(self, loop: "ToolLoop") -> None:
        super().__init__(f"generation failed after tool {loop.last_tool}")
        self.loop = loop


@dataclass
class ToolLoop:
    """Accumulator for one bounded tool-use conversation."""

    tools_used: list[str] = field(default_factory=list)
    foods_suggested: list[FoodSuggestion] = field(default_factory=list)
    depth: int = 0
    last_tool: str | None = None
    last_result: ToolResult | None = None

    def record(self, tool_name: str, result: ToolResult) -> None:
        """Count a tool execution and collect any suggested foods."""
        self.depth += 1
        self.tools_used.append(tool_name)
        self.last_tool = tool_name
        self.last_result = result
        if tool_name == ToolName.SEARCH_FOOD_DATABASE and result.success:
            foods = (result.data or {}).get("foods") or []
            self.foods_suggested.extend(
                FoodSuggestion.from_payload(food)
                for food in foods
                if isinstance(food, dict)
            )

    def respond(self, text: str) -> CoachResponse:
        return CoachResponse(
            text=text,
            tools_used=list(self.tools_used),
            foods_suggested=list(self.foods_suggested),
        )

    def summarize(self) -> CoachResponse:
        """Describe the latest tool result without the model."""
        if self.last_tool is None or self.last_result is None:
            return self.respond(ISSUE_TEXT)
        return summarize_tool_result(
            self.last_tool, self.last_result, self.tools_used, self.foods_suggested
        )


@dataclass
class CoachService:
    """Entry point for coach chat and generated dashboard messages."""

    generation_client: GenerationClient
    context_builder: ContextSnapshotBuilder
    quota: QuotaTracker
    cache: ResponseCache
    tools: ToolExecutor
    max_tool_depth: int = 3
    request_timeout_seconds: float = 30.0

    async def chat(
        self, message: str, history: list[ChatTurn] | None = None
    ) -> CoachResponse:
        """Answer a free-text message, using tools when the model asks for them."""
        context = self.context_builder.build()
        conversation = [*(history or []), ChatTurn.user(message)]
        try:
            return await self._converse(
                build_chat_system_prompt(context), conversation
            )
        except ToolLoopInterrupted as exc:
            return exc.loop.summarize()
        except OrchestrationError as exc:
            _logger.info("Coach chat fallback: %s", exc)
            return chat_fallback(message, context)

    async def message(self, category: str) -> str:
        """Return a cached or freshly generated message for a category."""
        context = self.context_builder.build()
        cached = self.cache.get(category)
        if cached is not None and _is_usable(category, cached):
            return cached
        try:
            text = await self._generate_message(category, context)
        except OrchestrationError as exc:
            _logger.info("Coach %s fallback: %s", category, exc)
            return category_fallback(category, context)
        self.cache.put(category, text)
        return text

    async def greeting(self) -> Greeting:
        """Return the two-part dashboard greeting."""
        raw = await self.message(MessageCategory.GREETING)
        return Greeting.model_validate_json(raw)

    async def insight(self) -> str:
        return await self.message(MessageCategory.INSIGHT)

    async def recommendation(self) -> str:
        return await self.message(MessageCategory.RECOMMENDATION)

    async def summary(self) -> str:
        return await self.message(MessageCategory.SUMMARY)

    async def quick_suggest(
        self,
        max_calories: float | None = None,
        min_protein: float | None = None,
        category: str | None = None,
    ) -> list[FoodSuggestion]:
        """Search foods directly, without a remote call."""
        arguments: dict[str, object] = {"verifiedOnly": False}
        if max_calories is not None:
            arguments["maxCalories"] = max_calories
        if min_protein is not None:
            arguments["minProtein"] = min_protein
        if category:
            arguments["category"] = category
        result = await self.tools.execute(ToolName.SEARCH_FOOD_DATABASE, arguments)
        if not result.success or not result.data:
            return []
        return [
            FoodSuggestion.from_payload(food)
            for food in result.data.get("foods") or []
            if isinstance(food, dict)
        ]

    def quota_stats(self) -> QuotaStats:
        return self.quota.stats()

    async def _converse(
        self, system_prompt: str, conversation: list[ChatTurn]
    ) -> CoachResponse:
        self._admit()
        tools = self.tools.descriptors
        reply = await self._call_remote(system_prompt, conversation, tools)
        loop = ToolLoop()
        while reply.tool_call is not None:
            if loop.depth >= self.max_tool_depth:
                _logger.info("Tool depth limit reached: tools=%s", loop.tools_used)
                return loop.respond(NEED_SPECIFIC_TEXT)
            call = ToolCall(
                name=reply.tool_call.name, arguments=reply.tool_call.arguments
            )
            result = await self.tools.execute(call.name, call.arguments)
            loop.record(call.name, result)
            conversation.append(ChatTurn.tool_request(call))
            conversation.append(ChatTurn.tool_response(call.name, result))
            try:
                reply = await self._call_remote(system_prompt, conversation, tools)
            except RemoteCallFailed as exc:
                raise ToolLoopInterrupted(loop) from exc
        if reply.text and reply.text.strip():
            return loop.respond(reply.text)
        return loop.summarize()

    async def _generate_message(
        self, category: str, context: ContextSnapshot
    ) -> str:
        self._admit()
        prompt = build_message_prompt(category, context)
        reply = await self._call_remote(
            MESSAGE_SYSTEM_PROMPT, [ChatTurn.user(prompt)], []
        )
        text = (reply.text or "").strip()
        if not text:
            raise RemoteCallFailed(f"Empty {category} reply")
        if category == MessageCategory.GREETING:
            try:
                return _parse_greeting(text).model_dump_json()
            except ValidationError as exc:
                raise RemoteCallFailed("Greeting reply is not valid JSON") from exc
        return text

    def _admit(self) -> None:
        decision = self.quota.can_call()
        if not decision.allowed:
            raise AdmissionDenied(decision.reason)

    async def _call_remote(
        self,
        system_prompt: str,
        conversation: list[ChatTurn],
        tools: list[ToolDescriptor],
    ) -> GenerationReply:
        try:
            raw = await asyncio.wait_for(
                self.generation_client.generate(
                    system_prompt=system_prompt,
                    conversation=list(conversation),
                    tools=tools,
                ),
                timeout=self.request_timeout_seconds,
            )
        except Exception as exc:
            _logger.warning("Generation call failed: %r", exc)
            raise RemoteCallFailed(str(exc) or type(exc).__name__) from exc
        self.quota.record_call()
        try:
            return GenerationReply.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Unreadable generation reply: %s", exc)
            raise RemoteCallFailed("Unreadable generation reply") from exc


def _parse_greeting(text: str) -> Greeting:
    cleaned = text.replace("```json", "").replace("```", "").strip()
    return Greeting.model_validate_json(cleaned)


def _is_usable(category: str, cached: str) -> bool:
    if category != MessageCategory.GREETING:
        return True
    try:
        Greeting.model_validate_json(cached)
    except ValidationError:
        return False
    return True
