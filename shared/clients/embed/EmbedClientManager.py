from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager):
    """Selects the embeddings backend from EMBED_ENGINE (openai, ollama)."""

    client_type = "embed"
    class_prefix = "EmbedClient"
    default_engine = "openai"
    label = "Embed"

    def get_client(self) -> EmbedClientInterface:
        return self.client
