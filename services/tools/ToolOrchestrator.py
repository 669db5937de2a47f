"""Tool-use loop between the chat model and the ToolRegistry.

The model answers with stop_reason "tool_use" while it wants tool results.
Every requested call is executed, the results are sent back in one user turn
and the model is asked again, for at most max_rounds rounds.
"""

from services.tools.ToolRegistry import ToolRegistry
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.tools import ToolResult, ToolRunResult

MAX_TOOL_ROUNDS = 5


class ToolOrchestrator:
    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        registry: ToolRegistry,
        max_rounds: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self._registry = registry
        self.max_rounds = max_rounds if max_rounds is not None else int(helper_config.get_number_val("CHAT_MAX_TOOL_ROUNDS", default=MAX_TOOL_ROUNDS))

    def is_available(self) -> bool:
        return self._llm_client.supports_tools() and bool(self._registry.get_names())

    async def do_run(self, messages: list[dict], system_prompt: str | None = None) -> ToolRunResult:
        """Answer the conversation, executing the tools the model asks for.

        Args:
            messages (list[dict]): Conversation turns ({"role", "content"}).
            system_prompt (str | None): Optional system instructions.

        Returns:
            ToolRunResult: The final answer text and every tool call made.

        Raises:
            Exception: If an LLM request fails.
            ValueError: If the final answer carries no text.
        """
        tools = self._registry.get_definitions()
        conversation = list(messages)
        tools_used: list[ToolResult] = []

        turn = await self._llm_client.do_chat_with_tools(conversation, tools, system_prompt=system_prompt)
        rounds = 0
        while turn.stop_reason == "tool_use" and turn.get_tool_uses():
            if rounds >= self.max_rounds:
                self.logging.warning("Tool loop stopped after %d round(s), the model still requested tools.", rounds)
                break
            rounds += 1

            tool_results = []
            for call in turn.get_tool_uses():
                self.logging.info("Round %d: model calls tool '%s'.", rounds, call.get("name"))
                result = await self._registry.execute(call.get("name", ""), call.get("input") or {})
                tools_used.append(result)
                tool_results.append(
                    {
                        "type": "tool_result",
                        "tool_use_id": call.get("id"),
                        "content": result.to_tool_content(),
                        "is_error": not result.success,
                    }
                )

            conversation.append({"role": "assistant", "content": turn.content})
            conversation.append({"role": "user", "content": tool_results})
            turn = await self._llm_client.do_chat_with_tools(conversation, tools, system_prompt=system_prompt)

        final_text = turn.get_text()
        if not final_text.strip():
            raise ValueError(f"The model returned no text (stop reason: {turn.stop_reason}).")
        return ToolRunResult(final_text=final_text, tools_used=tools_used, stop_reason=turn.stop_reason)
