"""Named tools the chat model may call, with their async handlers."""

import time
from typing import Any, Awaitable, Callable

from shared.helper.HelperConfig import HelperConfig
from shared.models.tools import ToolDefinition, ToolResult

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class ToolRegistry:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._tools: dict[str, tuple[ToolDefinition, ToolHandler]] = {}

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """Add a tool. Registering a name again replaces the earlier tool."""
        self._tools[definition.name] = (definition, handler)

    def get_definitions(self, names: list[str] | None = None) -> list[ToolDefinition]:
        """Definitions of all tools, or of the named ones, in registration order."""
        return [definition for name, (definition, _) in self._tools.items() if names is None or name in names]

    def get_names(self) -> list[str]:
        return list(self._tools)

    async def execute(self, name: str, tool_input: dict[str, Any]) -> ToolResult:
        """Run one tool call.

        Failures (unknown tool, handler exception) are logged and returned as
        an unsuccessful ToolResult so the model can react to them.
        """
        started = time.monotonic()
        if name not in self._tools:
            self.logging.warning("Model requested unknown tool '%s'.", name)
            return ToolResult(tool_name=name, input=tool_input, success=False, error=f"Tool not found: {name}")

        _, handler = self._tools[name]
        try:
            output = await handler(tool_input)
        except Exception as e:
            self.logging.error("Tool '%s' failed: %s", name, e)
            return ToolResult(
                tool_name=name,
                input=tool_input,
                success=False,
                error=f"Tool execution failed: {e}",
                execution_ms=int((time.monotonic() - started) * 1000),
            )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        self.logging.debug("Tool '%s' answered in %d ms.", name, elapsed_ms)
        return ToolResult(tool_name=name, input=tool_input, output=output, success=True, execution_ms=elapsed_ms)
