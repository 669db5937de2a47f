from abc import abstractmethod
from collections import Counter
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.RAGMatch import RAGMatch
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import KnowledgeBaseStats


class RAGClientInterface(ClientInterface):
    """Vector store adapter.

    Similarity and full-text ranking are delegated to the backend. Every
    operation is one HTTP call; failures are raised to the caller and never retried.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_documents(self) -> str:
        """
        Returns the endpoint path of the document collection (upsert, lookup, listing, delete).

        Returns:
            str: The endpoint path (e.g. "/rest/v1/rag_documents")
        """
        pass

    @abstractmethod
    def _get_endpoint_semantic_search(self) -> str:
        """
        Returns the endpoint path for vector similarity queries.

        Returns:
            str: The endpoint path (e.g. "/rest/v1/rpc/search_documents")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_upsert_payload(self, doc_id: str, content: str, embedding: list[float], metadata: dict[str, Any]) -> dict:
        """
        Builds the backend-specific body for an upsert of a single chunk.

        Args:
            doc_id (str): The chunk id. An existing row with this id is overwritten.
            content (str): The chunk text.
            embedding (list[float]): The chunk embedding.
            metadata (dict[str, Any]): Payload stored alongside the vector.

        Returns:
            dict: The request body.
        """
        pass

    @abstractmethod
    def get_upsert_headers(self) -> dict:
        """
        Returns extra headers required to turn a write into an upsert.
        """
        pass

    @abstractmethod
    def get_semantic_search_payload(self, query_embedding: list[float], limit: int, threshold: float) -> dict:
        """
        Builds the body for a similarity query.

        Args:
            query_embedding (list[float]): The query vector.
            limit (int): Maximum number of matches.
            threshold (float): Minimum similarity a match must reach.

        Returns:
            dict: The request body.
        """
        pass

    @abstractmethod
    def get_keyword_search_params(self, query: str, limit: int) -> dict:
        """
        Builds the query parameters for a full-text (BM25-style) search.
        """
        pass

    @abstractmethod
    def get_id_filter_params(self, doc_id: str) -> dict:
        """
        Builds the query parameters selecting a single row by id.
        """
        pass

    @abstractmethod
    def get_list_params(self, source: str | None = None, language: str | None = None) -> dict:
        """
        Builds the query parameters for listing rows, optionally filtered by source and language.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_matches(self, raw_response: Any) -> list[RAGMatch]:
        """
        Converts a raw backend response into matches, preserving backend order.

        Raises:
            ValueError: If the response has an unexpected shape.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_index_document(self, doc_id: str, content: str, embedding: list[float], metadata: dict[str, Any]) -> httpx.Response:
        """Upsert one chunk with its embedding. Re-indexing the same id overwrites it.

        Args:
            doc_id (str): The chunk id.
            content (str): The chunk text.
            embedding (list[float]): The chunk vector.
            metadata (dict[str, Any]): Payload stored alongside the vector.

        Returns:
            httpx.Response: The response from the upsert request.
        """
        return await self.do_request(
            method="POST",
            json=self.get_upsert_payload(doc_id, content, embedding, metadata),
            endpoint=self._get_endpoint_documents(),
            additional_headers=self.get_upsert_headers(),
            raise_on_error=True,
        )

    async def do_semantic_search(self, query_embedding: list[float], limit: int = 5, threshold: float = 0.5) -> list[RAGMatch]:
        """Rank stored chunks by vector similarity to the query embedding.

        Args:
            query_embedding (list[float]): The query vector.
            limit (int): Maximum number of matches.
            threshold (float): Minimum similarity cutoff.

        Returns:
            list[RAGMatch]: Matches, best first.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_semantic_search_payload(query_embedding, limit, threshold),
            endpoint=self._get_endpoint_semantic_search(),
            raise_on_error=True,
        )
        return self.extract_matches(resp.json())

    async def do_keyword_search(self, query: str, limit: int = 5) -> list[RAGMatch]:
        """Full-text search over chunk content.

        Args:
            query (str): The user's query text.
            limit (int): Maximum number of matches.

        Returns:
            list[RAGMatch]: Matches in backend rank order.
        """
        resp = await self.do_request(
            method="GET",
            params=self.get_keyword_search_params(query, limit),
            endpoint=self._get_endpoint_documents(),
            raise_on_error=True,
        )
        return self.extract_matches(resp.json())

    async def do_get_document(self, doc_id: str) -> RAGMatch | None:
        """Fetch a single chunk by id.

        Returns:
            RAGMatch | None: The chunk, or None if no row has this id.
        """
        resp = await self.do_request(
            method="GET",
            params=self.get_id_filter_params(doc_id),
            endpoint=self._get_endpoint_documents(),
            raise_on_error=True,
        )
        matches = self.extract_matches(resp.json())
        return matches[0] if matches else None

    async def do_delete_document(self, doc_id: str) -> None:
        """Delete a single chunk by id. Deleting an unknown id is not an error."""
        await self.do_request(
            method="DELETE",
            params=self.get_id_filter_params(doc_id),
            endpoint=self._get_endpoint_documents(),
            raise_on_error=True,
        )

    async def do_list_documents(self, source: str | None = None, language: str | None = None) -> list[RAGMatch]:
        """List stored chunks, optionally filtered by source and language.

        Returns:
            list[RAGMatch]: All matching chunks.
        """
        resp = await self.do_request(
            method="GET",
            params=self.get_list_params(source=source, language=language),
            endpoint=self._get_endpoint_documents(),
            raise_on_error=True,
        )
        return self.extract_matches(resp.json())

    async def do_get_stats(self) -> KnowledgeBaseStats:
        """Count stored chunks per source and per language.

        Returns:
            KnowledgeBaseStats: Totals computed from a full listing.
        """
        docs = await self.do_list_documents()
        by_source = Counter(str(doc.metadata.get("source", "unknown")) for doc in docs)
        by_language = Counter(str(doc.metadata.get("language", "unknown")) for doc in docs)
        return KnowledgeBaseStats(total=len(docs), by_source=dict(by_source), by_language=dict(by_language))
