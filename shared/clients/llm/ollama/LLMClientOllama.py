import json

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOllama(LLMClientInterface):
    """Self-hosted chat model through Ollama's /api/chat.

    Streaming answers are newline-delimited JSON objects, one per token batch,
    the last one carrying ``"done": true`` and the evaluation counters.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="BASE_URL", val_type="string", default=None)]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/api/tags"

    def _get_endpoint_chat(self) -> str:
        return "/api/chat"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], system_prompt: str | None = None, stream: bool = False) -> dict:
        # Ollama has no separate system field, the prompt goes first in the conversation
        conversation = [{"role": "system", "content": system_prompt}] if system_prompt else []
        conversation += [{"role": m["role"], "content": m["content"]} for m in messages]
        return {
            "model": self.chat_model,
            "messages": conversation,
            "stream": stream,
            "keep_alive": self._keep_alive,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Return ``message.content`` of a non-streamed /api/chat answer.

        Raises:
            ValueError: If the answer has no message content.
        """
        content = (response_data.get("message") or {}).get("content")
        if content is None:
            raise ValueError(f"Ollama chat answer has no message content. Keys: {sorted(response_data)}")
        return content

    def extract_stream_delta(self, line: str) -> str | None:
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Ollama stream returned a malformed line: {line[:200]}") from e
        if event.get("error"):
            raise Exception(f"Ollama stream error: {event['error']}")
        if event.get("done"):
            self.logging.debug(
                "Ollama stream done (prompt tokens: %s, generated tokens: %s).",
                event.get("prompt_eval_count"), event.get("eval_count"),
            )
        return (event.get("message") or {}).get("content")
