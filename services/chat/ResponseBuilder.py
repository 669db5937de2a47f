from typing import Any, Literal

from pydantic import BaseModel

PartType = Literal["text", "action", "suggestion", "source"]


class ResponsePart(BaseModel):
    type: PartType
    content: str
    metadata: dict[str, Any] | None = None


class ResponseBuilder:
    """Accumulates reply parts and renders them as one message.

    Layout of build(): text parts separated by a blank line, then one action
    per line, then a "Suggestions:" block with one bullet per suggestion.
    Sources are never rendered into the text; build_with_sources() returns them
    separately.
    """

    def __init__(self) -> None:
        self.parts: list[ResponsePart] = []

    def add_text(self, text: str) -> "ResponseBuilder":
        self.parts.append(ResponsePart(type="text", content=text))
        return self

    def add_action(self, action: str, metadata: dict[str, Any] | None = None) -> "ResponseBuilder":
        self.parts.append(ResponsePart(type="action", content=action, metadata=metadata))
        return self

    def add_suggestion(self, suggestion: str) -> "ResponseBuilder":
        self.parts.append(ResponsePart(type="suggestion", content=suggestion))
        return self

    def add_source(self, source: str, metadata: dict[str, Any] | None = None) -> "ResponseBuilder":
        self.parts.append(ResponsePart(type="source", content=source, metadata=metadata))
        return self

    def _contents(self, part_type: PartType) -> list[str]:
        return [p.content for p in self.parts if p.type == part_type]

    def build(self) -> str:
        response = "\n\n".join(self._contents("text"))

        actions = self._contents("action")
        if actions:
            response += "\n\n" + "\n".join(actions)

        suggestions = self._contents("suggestion")
        if suggestions:
            response += "\n\nSuggestions:\n" + "\n".join(f"• {s}" for s in suggestions)

        return response

    def build_with_sources(self) -> tuple[str, list[str]]:
        """Render the response and return the source citations next to it."""
        return self.build(), self._contents("source")


def format_response_with_suggestions(text: str, suggestions: list[str]) -> str:
    builder = ResponseBuilder().add_text(text)
    for suggestion in suggestions:
        builder.add_suggestion(suggestion)
    return builder.build()
