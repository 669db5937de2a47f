"""Pydantic models for knowledge-base search and stats."""

from pydantic import BaseModel, Field

from shared.clients.rag.models.RAGMatch import RAGMatch


class SearchRequest(BaseModel):
    """Hybrid search against the knowledge base."""

    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


class SearchResponse(BaseModel):
    query: str
    results: list[RAGMatch]
    total: int


class KnowledgeBaseStats(BaseModel):
    total: int
    by_source: dict[str, int]
    by_language: dict[str, int]
