from datetime import datetime, timezone
from typing import Any

from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.RAGMatch import RAGMatch
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

SELECT_COLUMNS = "id,content,metadata"


class RAGClientSupabase(RAGClientInterface):
    """Supabase (PostgREST + pgvector) engine.

    Expects a table with columns id, content, embedding, metadata (jsonb) and
    indexed_at, plus an RPC function taking query_embedding, match_count and
    match_threshold and returning id, content, metadata, similarity.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._table = self.get_config_val("TABLE", default="rag_documents", val_type="string")
        self._search_function = self.get_config_val("SEARCH_FUNCTION", default="search_documents", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="TABLE", val_type="string", default="rag_documents"),
            EnvConfig(env_key="SEARCH_FUNCTION", val_type="string", default="search_documents"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"apikey": self._api_key, "Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/v1/"

    def _get_endpoint_documents(self) -> str:
        return f"/rest/v1/{self._table}"

    def _get_endpoint_semantic_search(self) -> str:
        return f"/rest/v1/rpc/{self._search_function}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_upsert_payload(self, doc_id: str, content: str, embedding: list[float], metadata: dict[str, Any]) -> dict:
        return {
            "id": doc_id,
            "content": content,
            "embedding": embedding,
            "metadata": metadata,
            "indexed_at": datetime.now(timezone.utc).isoformat(),
        }

    def get_upsert_headers(self) -> dict:
        return {"Prefer": "resolution=merge-duplicates,return=minimal"}

    def get_semantic_search_payload(self, query_embedding: list[float], limit: int, threshold: float) -> dict:
        return {
            "query_embedding": query_embedding,
            "match_count": limit,
            "match_threshold": threshold,
        }

    def get_keyword_search_params(self, query: str, limit: int) -> dict:
        # plainto_tsquery accepts free text, to_tsquery would reject "halal meat"
        return {"select": SELECT_COLUMNS, "content": f"plfts.{query}", "limit": str(limit)}

    def get_id_filter_params(self, doc_id: str) -> dict:
        return {"select": SELECT_COLUMNS, "id": f"eq.{doc_id}"}

    def get_list_params(self, source: str | None = None, language: str | None = None) -> dict:
        params = {"select": SELECT_COLUMNS, "order": "id"}
        if source:
            params["metadata->>source"] = f"eq.{source}"
        if language:
            params["metadata->>language"] = f"eq.{language}"
        return params

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_matches(self, raw_response: Any) -> list[RAGMatch]:
        if raw_response is None:
            return []
        if not isinstance(raw_response, list):
            raise ValueError(f"Supabase returned an unexpected payload of type {type(raw_response).__name__}.")
        return [
            RAGMatch(
                id=str(row["id"]),
                content=row.get("content") or "",
                metadata=row.get("metadata") or {},
                similarity=row.get("similarity"),
            )
            for row in raw_response
        ]
