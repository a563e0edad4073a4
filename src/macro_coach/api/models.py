"""Pydantic models for coach API payloads."""

from typing import Literal

from pydantic import BaseModel, Field

from macro_coach.domain.coach import ChatTurn


class ChatHistoryTurn(BaseModel):
    """A prior turn supplied by the client."""

    role: Literal["user", "assistant"]
    content: str

    def to_turn(self) -> ChatTurn:
        if self.role == "user":
            return ChatTurn.user(self.content)
        return ChatTurn.assistant(self.content)


class ChatRequest(BaseModel):
    """Free-text coach chat request."""

    message: str = Field(min_length=1, max_length=2000)
    history: list[ChatHistoryTurn] = Field(default_factory=list, max_length=20)
