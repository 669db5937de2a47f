"""
Test suite for the chat tools: the ToolRegistry, the branch and ticket tools,
and the ToolOrchestrator loop driven by a scripted model.
"""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from services.tools.ToolOrchestrator import ToolOrchestrator
from services.tools.ToolRegistry import ToolRegistry
from services.tools.branch_tools import BRANCHES, find_branch, is_open, register_branch_tools
from services.tools.ticket_tools import register_ticket_tools
from shared.helper.HelperConfig import HelperConfig
from shared.models.support import SupportTicket
from shared.models.tools import LLMToolTurn, ToolDefinition


def _definition(name: str) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"{name} tool", input_schema={"type": "object", "properties": {}})


def _tool_use(tool_id: str, name: str, tool_input: dict) -> dict:
    return {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input}


class ScriptedToolLLM:
    """Answers do_chat_with_tools with the given turns, in order."""

    def __init__(self, turns: list[LLMToolTurn], tools: bool = True) -> None:
        self.turns = list(turns)
        self.tools = tools
        self.conversations: list[list[dict]] = []

    def supports_tools(self) -> bool:
        return self.tools

    async def do_chat_with_tools(self, messages: list[dict], tools: list[ToolDefinition], system_prompt: str | None = None) -> LLMToolTurn:
        self.conversations.append(list(messages))
        return self.turns.pop(0)


@pytest.fixture
def registry(helper_config: HelperConfig) -> ToolRegistry:
    return ToolRegistry(helper_config=helper_config)


class TestToolRegistry:
    async def test_execute_should_return_handler_output(self, registry: ToolRegistry) -> None:
        # Arrange
        async def echo(tool_input: dict) -> dict:
            return {"echo": tool_input["word"]}

        registry.register(_definition("echo"), echo)

        # Act
        result = await registry.execute("echo", {"word": "halal"})

        # Assert
        assert result.success is True
        assert result.output == {"echo": "halal"}
        assert result.to_tool_content() == '{"echo": "halal"}'

    async def test_execute_should_report_unknown_tool(self, registry: ToolRegistry) -> None:
        result = await registry.execute("teleport", {})

        assert result.success is False
        assert result.to_tool_content() == "Error: Tool not found: teleport"

    async def test_execute_should_turn_handler_errors_into_failed_results(self, registry: ToolRegistry) -> None:
        async def broken(tool_input: dict) -> dict:
            raise ValueError("Branch not found: paris")

        registry.register(_definition("broken"), broken)

        result = await registry.execute("broken", {"branch": "paris"})

        assert result.success is False
        assert result.error == "Tool execution failed: Branch not found: paris"

    def test_definitions_should_keep_registration_order_and_filter(self, registry: ToolRegistry) -> None:
        async def noop(tool_input: dict) -> None:
            return None

        for name in ("b", "a", "c"):
            registry.register(_definition(name), noop)

        assert [d.name for d in registry.get_definitions()] == ["b", "a", "c"]
        assert [d.name for d in registry.get_definitions(["c", "b"])] == ["b", "c"]


class TestBranchTools:
    @pytest.mark.parametrize("name", ["Angleur", " angleur ", "ANGLEUR"])
    def test_find_branch_should_ignore_case_and_spacing(self, name: str) -> None:
        assert find_branch(name) is BRANCHES["angleur"]

    def test_find_branch_should_accept_spaces_for_dashes(self) -> None:
        assert find_branch("Saint Gilles") is BRANCHES["saint-gilles"]

    def test_find_branch_should_reject_unknown_branch(self) -> None:
        with pytest.raises(ValueError, match="Branch not found: paris"):
            find_branch("paris")

    @pytest.mark.parametrize(
        "hour, minute, expected",
        [(11, 59, False), (12, 0, True), (14, 29, True), (14, 30, False), (20, 15, True), (23, 0, False)],
    )
    def test_is_open_should_follow_service_slots(self, hour: int, minute: int, expected: bool) -> None:
        now = datetime(2026, 10, 17, hour, minute)

        assert is_open(BRANCHES["wandre"]["hours"], now) is expected

    async def test_contact_tool_should_return_address(self, registry: ToolRegistry) -> None:
        register_branch_tools(registry)

        result = await registry.execute("get_branch_contact", {"branch": "seraing"})

        assert result.success is True
        assert result.output["address"] == BRANCHES["seraing"]["address"]

    async def test_hours_tool_should_report_open_state(self, registry: ToolRegistry) -> None:
        register_branch_tools(registry, tz_name="Europe/Brussels")

        result = await registry.execute("get_branch_hours", {"branch": "angleur"})

        assert result.success is True
        assert result.output["hours"] == {"lunch": "12:00-14:30", "dinner": "19:00-23:00"}
        assert isinstance(result.output["is_open"], bool)


class TestTicketTools:
    async def test_create_tool_should_open_ticket(self, registry: ToolRegistry) -> None:
        # Arrange
        support_client = AsyncMock()
        support_client.do_create_ticket.return_value = SupportTicket(id="7", email="client@example.be", subject="Frites froides")
        register_ticket_tools(registry, support_client)

        # Act
        result = await registry.execute(
            "create_support_ticket",
            {"email": "client@example.be", "subject": "Frites froides", "description": "Commande 12 froide", "category": "complaint"},
        )

        # Assert
        assert result.success is True
        assert result.output["ticket_id"] == "7"
        ticket = support_client.do_create_ticket.await_args.args[0]
        assert ticket.category == "complaint"
        assert ticket.priority == "normal"

    async def test_create_tool_should_reject_invalid_email(self, registry: ToolRegistry) -> None:
        support_client = AsyncMock()
        register_ticket_tools(registry, support_client)

        result = await registry.execute("create_support_ticket", {"email": "not-an-email", "subject": "x", "description": "y"})

        assert result.success is False
        assert "Invalid ticket" in result.error
        support_client.do_create_ticket.assert_not_awaited()

    async def test_status_tool_should_report_missing_ticket(self, registry: ToolRegistry) -> None:
        support_client = AsyncMock()
        support_client.do_get_ticket.return_value = None
        register_ticket_tools(registry, support_client)

        result = await registry.execute("get_ticket_status", {"ticket_id": "99"})

        assert result.success is False
        assert result.error == "Tool execution failed: Ticket not found: 99"

    async def test_status_tool_should_hide_customer_email(self, registry: ToolRegistry) -> None:
        support_client = AsyncMock()
        support_client.do_get_ticket.return_value = SupportTicket(id="7", email="client@example.be", subject="Frites", status="answered")
        register_ticket_tools(registry, support_client)

        result = await registry.execute("get_ticket_status", {"ticket_id": "7"})

        assert result.output["status"] == "answered"
        assert "email" not in result.output


class TestToolOrchestrator:
    async def test_run_should_feed_tool_results_back_until_final_text(self, helper_config: HelperConfig, registry: ToolRegistry) -> None:
        # Arrange
        register_branch_tools(registry)
        llm = ScriptedToolLLM([
            LLMToolTurn(content=[_tool_use("toolu_1", "get_branch_contact", {"branch": "wandre"})], stop_reason="tool_use"),
            LLMToolTurn(content=[{"type": "text", "text": "Rue du Pont de Wandre 75."}], stop_reason="end_turn"),
        ])
        orchestrator = ToolOrchestrator(helper_config=helper_config, llm_client=llm, registry=registry)

        # Act
        result = await orchestrator.do_run([{"role": "user", "content": "Adresse de Wandre ?"}], system_prompt="Sys")

        # Assert
        assert result.final_text == "Rue du Pont de Wandre 75."
        assert [r.tool_name for r in result.tools_used] == ["get_branch_contact"]
        second_call = llm.conversations[1]
        assert second_call[1]["role"] == "assistant"
        tool_result = second_call[2]["content"][0]
        assert tool_result["type"] == "tool_result"
        assert tool_result["tool_use_id"] == "toolu_1"
        assert tool_result["is_error"] is False
        assert "Rue du Pont de Wandre 75" in tool_result["content"]

    async def test_run_should_answer_every_tool_call_of_a_turn(self, helper_config: HelperConfig, registry: ToolRegistry) -> None:
        register_branch_tools(registry)
        llm = ScriptedToolLLM([
            LLMToolTurn(
                content=[_tool_use("toolu_1", "get_branch_contact", {"branch": "seraing"}), _tool_use("toolu_2", "teleport", {})],
                stop_reason="tool_use",
            ),
            LLMToolTurn(content=[{"type": "text", "text": "Voilà."}], stop_reason="end_turn"),
        ])
        orchestrator = ToolOrchestrator(helper_config=helper_config, llm_client=llm, registry=registry)

        await orchestrator.do_run([{"role": "user", "content": "Seraing ?"}])

        results = llm.conversations[1][2]["content"]
        assert [r["tool_use_id"] for r in results] == ["toolu_1", "toolu_2"]
        assert results[1]["is_error"] is True

    async def test_run_should_stop_after_max_rounds(self, helper_config: HelperConfig, registry: ToolRegistry) -> None:
        register_branch_tools(registry)
        looping = LLMToolTurn(
            content=[{"type": "text", "text": "Encore un instant."}, _tool_use("toolu_x", "get_branch_hours", {"branch": "angleur"})],
            stop_reason="tool_use",
        )
        llm = ScriptedToolLLM([looping] * 5)
        orchestrator = ToolOrchestrator(helper_config=helper_config, llm_client=llm, registry=registry, max_rounds=2)

        result = await orchestrator.do_run([{"role": "user", "content": "Angleur ?"}])

        assert len(llm.conversations) == 3
        assert len(result.tools_used) == 2
        assert result.final_text == "Encore un instant."
        assert result.stop_reason == "tool_use"

    async def test_run_should_raise_when_final_answer_has_no_text(self, helper_config: HelperConfig, registry: ToolRegistry) -> None:
        register_branch_tools(registry)
        llm = ScriptedToolLLM([LLMToolTurn(content=[], stop_reason="max_tokens")])
        orchestrator = ToolOrchestrator(helper_config=helper_config, llm_client=llm, registry=registry)

        with pytest.raises(ValueError, match="max_tokens"):
            await orchestrator.do_run([{"role": "user", "content": "?"}])

    def test_availability_should_need_tool_capable_engine_and_tools(self, helper_config: HelperConfig, registry: ToolRegistry) -> None:
        empty = ToolOrchestrator(helper_config=helper_config, llm_client=ScriptedToolLLM([]), registry=registry)
        assert empty.is_available() is False

        register_branch_tools(registry)
        assert ToolOrchestrator(helper_config=helper_config, llm_client=ScriptedToolLLM([]), registry=registry).is_available() is True
        assert ToolOrchestrator(helper_config=helper_config, llm_client=ScriptedToolLLM([], tools=False), registry=registry).is_available() is False

    def test_max_rounds_should_come_from_config(self, helper_config: HelperConfig, registry: ToolRegistry, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAT_MAX_TOOL_ROUNDS", "3")

        orchestrator = ToolOrchestrator(helper_config=helper_config, llm_client=ScriptedToolLLM([]), registry=registry)

        assert orchestrator.max_rounds == 3
