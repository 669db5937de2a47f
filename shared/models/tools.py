"""Pydantic models for LLM tool use."""

import json
from typing import Any

from pydantic import BaseModel


class ToolDefinition(BaseModel):
    """A tool offered to the model. input_schema is a JSON schema object."""

    name: str
    description: str
    input_schema: dict[str, Any]


class ToolResult(BaseModel):
    tool_name: str
    input: dict[str, Any]
    output: Any = None
    success: bool
    error: str | None = None
    execution_ms: int = 0

    def to_tool_content(self) -> str:
        """Text handed back to the model as the tool result."""
        if not self.success:
            return f"Error: {self.error}"
        if isinstance(self.output, str):
            return self.output
        return json.dumps(self.output, ensure_ascii=False, default=str)


class LLMToolTurn(BaseModel):
    """One model answer of a tool-enabled conversation.

    content keeps the raw content blocks so they can be sent back unchanged
    with the tool results.
    """

    content: list[dict[str, Any]]
    stop_reason: str | None = None

    def get_text(self) -> str:
        return "".join(block.get("text", "") for block in self.content if block.get("type") == "text")

    def get_tool_uses(self) -> list[dict[str, Any]]:
        return [block for block in self.content if block.get("type") == "tool_use"]


class ToolRunResult(BaseModel):
    final_text: str
    tools_used: list[ToolResult] = []
    stop_reason: str | None = None
