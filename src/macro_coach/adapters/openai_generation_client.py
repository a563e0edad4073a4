"""OpenAI Responses API client for coach generation."""

import json
import logging
from dataclasses import dataclass

from openai import AsyncOpenAI

from macro_coach.domain.coach import ChatRole, ChatTurn, ToolDescriptor
from macro_coach.services.generation import GenerationClient

_logger = logging.getLogger(__name__)


@dataclass
class OpenAIGenerationClient(GenerationClient):
    """Generation client backed by OpenAI Responses API with function tools."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIGenerationClient":
        """Create an OpenAI generation client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def generate(
        self,
        *,
        system_prompt: str,
        conversation: list[ChatTurn],
        tools: list[ToolDescriptor],
    ) -> dict[str, object]:
        """Call the Responses API and return text or a single tool call."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "instructions": system_prompt,
            "input": build_input_items(conversation),
            "store": self.store,
        }
        if tools:
            request_payload["tools"] = [
                {
                    "type": "function",
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                    "strict": False,
                }
                for tool in tools
            ]
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        for item in response.output or []:
            if getattr(item, "type", None) == "function_call":
                return {
                    "tool_call": {
                        "name": item.name,
                        "arguments": decode_arguments(item.arguments),
                    }
                }
        return {"text": response.output_text}


def decode_arguments(raw: str | None) -> object:
    """Parse function-call arguments, keeping the raw text when it is not JSON.

    The tool executor reports unparseable arguments back to the model.
    """
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("Model sent malformed tool arguments: %.200s", raw)
        return raw


def encode_arguments(arguments: object) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


def build_input_items(conversation: list[ChatTurn]) -> list[dict[str, object]]:
    """Translate conversation turns into Responses API input items.

    Each tool request is paired with the tool response that follows it
    through a synthetic call id.
    """
    items: list[dict[str, object]] = []
    call_index = 0
    for turn in conversation:
        if turn.tool_call is not None:
            call_index += 1
            items.append(
                {
                    "type": "function_call",
                    "call_id": f"call_{call_index}",
                    "name": turn.tool_call.name,
                    "arguments": encode_arguments(turn.tool_call.arguments),
                }
            )
        elif turn.role == ChatRole.TOOL:
            items.append(
                {
                    "type": "function_call_output",
                    "call_id": f"call_{call_index}",
                    "output": turn.content,
                }
            )
        else:
            items.append({"role": turn.role.value, "content": turn.content})
    return items
