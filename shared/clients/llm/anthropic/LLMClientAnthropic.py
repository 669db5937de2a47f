from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperSSE import parse_sse_data_line
from shared.models.config import EnvConfig
from shared.models.tools import LLMToolTurn, ToolDefinition

ANTHROPIC_VERSION = "2023-06-01"


class LLMClientAnthropic(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.anthropic.com", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Anthropic"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.anthropic.com"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"x-api-key": self._api_key, "anthropic-version": ANTHROPIC_VERSION}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/v1/models"

    def _get_endpoint_chat(self) -> str:
        return "/v1/messages"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, stream: bool = False) -> dict:
        """Build the Messages API request body.

        Returns:
            dict: {"model", "max_tokens", "temperature", "messages", "stream"[, "system"]}
        """
        body = {
            "model": self.chat_model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "stream": stream,
        }
        if system_prompt:
            body["system"] = system_prompt
        return body

    def get_tool_chat_payload(self, messages: list[dict], tools: list[ToolDefinition], system_prompt: str | None = None) -> dict:
        body = self.get_chat_payload(messages, system_prompt=system_prompt, stream=False)
        body["tools"] = [tool.model_dump() for tool in tools]
        return body

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Join the text blocks of a Messages API response.

        Raises:
            ValueError: If the response carries no text content.
        """
        blocks = response_data.get("content")
        if not isinstance(blocks, list):
            raise ValueError(
                "Anthropic response does not contain content blocks. "
                f"Response keys: {list(response_data.keys())}"
            )
        texts = [block.get("text", "") for block in blocks if block.get("type") == "text"]
        if not texts:
            raise ValueError("Anthropic response does not contain a text block.")
        return "".join(texts)

    def supports_tools(self) -> bool:
        return True

    def extract_tool_turn(self, response_data: dict) -> LLMToolTurn:
        """Keep the content blocks as returned; they are replayed with the tool results.

        Raises:
            ValueError: If the response carries no content blocks.
        """
        blocks = response_data.get("content")
        if not isinstance(blocks, list):
            raise ValueError(
                "Anthropic response does not contain content blocks. "
                f"Response keys: {list(response_data.keys())}"
            )
        return LLMToolTurn(content=blocks, stop_reason=response_data.get("stop_reason"))

    def extract_stream_delta(self, line: str) -> str | None:
        # "event: ..." lines are redundant with the "type" field of the data payload
        event = parse_sse_data_line(line)
        if event is None:
            return None
        event_type = event.get("type")
        if event_type == "error":
            error = event.get("error") or {}
            raise Exception(f"Anthropic stream error: {error.get('message', 'unknown error')}")
        if event_type == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") == "text_delta":
                return delta.get("text")
        return None
