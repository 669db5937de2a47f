from abc import abstractmethod
from typing import AsyncIterator

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.tools import LLMToolTurn, ToolDefinition


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default="claude-sonnet-4-20250514")
        self.max_tokens = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_MAX_TOKENS", default=1024))
        self.temperature = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.7))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/v1/messages")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, stream: bool = False) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): Conversation turns
                (e.g. [{"role": "user", "content": "..."}]).
            system_prompt (str | None): Instructions placed ahead of the conversation.
            stream (bool): Whether the backend should stream tokens.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    def get_tool_chat_payload(self, messages: list[dict], tools: list[ToolDefinition], system_prompt: str | None = None) -> dict:
        """Build a non-streamed chat body offering tools to the model.

        Engines that support tool use override this together with
        extract_tool_turn() and supports_tools().

        Raises:
            NotImplementedError: If the engine has no tool use.
        """
        raise NotImplementedError(f"LLM engine '{self.get_engine_name()}' does not support tool use.")

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.
        """
        pass

    def supports_tools(self) -> bool:
        return False

    def extract_tool_turn(self, response_data: dict) -> LLMToolTurn:
        raise NotImplementedError(f"LLM engine '{self.get_engine_name()}' does not support tool use.")

    @abstractmethod
    def extract_stream_delta(self, line: str) -> str | None:
        """Extract the text delta carried by one line of a streamed response.

        Args:
            line (str): One raw, non-empty line of the streamed body.

        Returns:
            str | None: The text delta, or None for lines carrying no text
                (keep-alives, event names, bookkeeping events).

        Raises:
            Exception: If the line reports an upstream error.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict], system_prompt: str | None = None) -> str:
        """Send a chat/completion request and return the assistant reply text.

        Args:
            messages (list[dict]): Conversation turns.
            system_prompt (str | None): Optional system instructions.

        Returns:
            str: The assistant reply text.

        Raises:
            Exception: If the HTTP request fails.
            ValueError: If the response does not contain a valid reply.
        """
        body = self.get_chat_payload(messages, system_prompt=system_prompt, stream=False)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
            raise_on_error=True,
        )
        return self.extract_chat_response(response.json())

    async def do_chat_stream(self, messages: list[dict], system_prompt: str | None = None) -> AsyncIterator[str]:
        """Stream the assistant reply token by token.

        Args:
            messages (list[dict]): Conversation turns.
            system_prompt (str | None): Optional system instructions.

        Yields:
            str: Text deltas in generation order.
        """
        body = self.get_chat_payload(messages, system_prompt=system_prompt, stream=True)
        async for line in self.do_stream_lines(method="POST", json=body, endpoint=self._get_endpoint_chat()):
            delta = self.extract_stream_delta(line)
            if delta:
                yield delta

    async def do_chat_with_tools(self, messages: list[dict], tools: list[ToolDefinition], system_prompt: str | None = None) -> LLMToolTurn:
        """Send one tool-enabled chat request.

        Args:
            messages (list[dict]): Conversation turns; content may be a list of
                content blocks (tool_use / tool_result).
            tools (list[ToolDefinition]): Tools the model may call.
            system_prompt (str | None): Optional system instructions.

        Returns:
            LLMToolTurn: The raw content blocks and the stop reason.

        Raises:
            NotImplementedError: If the engine has no tool use.
            Exception: If the HTTP request fails.
        """
        body = self.get_tool_chat_payload(messages, tools, system_prompt=system_prompt)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
            raise_on_error=True,
        )
        return self.extract_tool_turn(response.json())
