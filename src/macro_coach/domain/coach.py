"""Domain models for coach conversations and replies."""

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from macro_coach.domain.nutrition import FoodSuggestion


class ChatRole(StrEnum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A request from the model to run a named tool."""

    name: str
    arguments: object = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Uniform envelope returned by every tool invocation."""

    success: bool
    data: dict[str, object] | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: dict[str, object]) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, object]:
        return {"success": self.success, "data": self.data, "error": self.error}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass(frozen=True)
class ChatTurn:
    """One turn of the conversation sent to the generation endpoint."""

    role: ChatRole
    content: str
    tool_call: ToolCall | None = None
    tool_name: str | None = None

    @classmethod
    def user(cls, content: str) -> "ChatTurn":
        return cls(role=ChatRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatTurn":
        return cls(role=ChatRole.ASSISTANT, content=content)

    @classmethod
    def tool_request(cls, call: ToolCall) -> "ChatTurn":
        return cls(role=ChatRole.ASSISTANT, content="", tool_call=call)

    @classmethod
    def tool_response(cls, name: str, result: ToolResult) -> "ChatTurn":
        return cls(role=ChatRole.TOOL, content=result.to_json(), tool_name=name)


@dataclass(frozen=True)
class ToolDescriptor:
    """Tool declaration advertised to the generation endpoint."""

    name: str
    description: str
    parameters: dict[str, object]


@dataclass(frozen=True)
class CoachResponse:
    """Terminal output of every chat orchestration path."""

    text: str
    tools_used: list[str] = field(default_factory=list)
    foods_suggested: list[FoodSuggestion] = field(default_factory=list)


class ToolCallPayload(BaseModel):
    """Tool call part of a generation reply."""

    name: str = Field(min_length=1)
    # Left unvalidated; the tool executor reports malformed arguments.
    arguments: Any = Field(default_factory=dict)


class GenerationReply(BaseModel):
    """Validated reply from the generation endpoint."""

    text: str | None = None
    tool_call: ToolCallPayload | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: object) -> object:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("text") is None and isinstance(data.get("response"), str):
                data["text"] = data["response"]
            if data.get("tool_call") is None and data.get("toolCall") is not None:
                data["tool_call"] = data["toolCall"]
        return data


class Greeting(BaseModel):
    """Two-part dashboard greeting."""

    lead: str = Field(min_length=1)
    emphasis: str = Field(min_length=1)
