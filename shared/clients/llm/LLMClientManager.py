from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager):
    """Selects the chat model backend from LLM_ENGINE (anthropic, ollama)."""

    client_type = "llm"
    class_prefix = "LLMClient"
    default_engine = "anthropic"
    label = "LLM"

    def get_client(self) -> LLMClientInterface:
        return self.client
