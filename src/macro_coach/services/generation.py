"""Remote text-generation port."""

from typing import Protocol

from macro_coach.domain.coach import ChatTurn, ToolDescriptor


class GenerationClient(Protocol):
    """Interface for the remote generation endpoint."""

    async def generate(
        self,
        *,
        system_prompt: str,
        conversation: list[ChatTurn],
        tools: list[ToolDescriptor],
    ) -> dict[str, object]:
        """Return {"text": ...} or {"tool_call": {"name", "arguments"}}."""
