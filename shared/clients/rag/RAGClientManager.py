from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager(ClientManager):
    """Selects the vector store backend from RAG_ENGINE (supabase)."""

    client_type = "rag"
    class_prefix = "RAGClient"
    default_engine = "supabase"
    label = "RAG"

    def get_client(self) -> RAGClientInterface:
        return self.client
