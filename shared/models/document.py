"""Pydantic models for knowledge-base documents.

Hierarchy:
  RAGDocument    : one knowledge-base entry (FAQ answer, policy, menu page, ...).
  ChunkRecord    : a stored slice of a RAGDocument, with a back-reference to its source title.
  IngestDocument : the input contract for ingesting one document.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

DocumentSource = Literal["faq", "policy", "procedure", "blog", "legal", "menu"]
DocumentLanguage = Literal["fr", "en", "nl"]


class RAGDocument(BaseModel):
    """Generic knowledge-base document."""

    id: str
    title: str
    content: str
    source: DocumentSource
    language: DocumentLanguage
    tags: list[str] = []
    last_updated: datetime
    embedding: list[float] | None = None
    metadata: dict[str, Any] | None = None


class ChunkRecord(RAGDocument):
    """A chunk of a source document as it was written to the vector store.

    Chunks are immutable once stored. Re-ingesting the same title with the same
    number of parts overwrites the same ids; any other change produces new ids.
    """

    source_title: str
    part_number: int
    total_parts: int

    @property
    def embedding_fallback(self) -> bool:
        """True if the embedding call failed and a zero vector was stored."""
        return bool(self.embedding) and not any(self.embedding)


class IngestDocument(BaseModel):
    """A single document to ingest into the knowledge base."""

    title: str = Field(min_length=1)
    content: str
    source: DocumentSource
    language: DocumentLanguage
    tags: list[str] = []
    metadata: dict[str, Any] | None = None
