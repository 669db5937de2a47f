"""RAGMatch model: one row returned by a vector-store query."""

from typing import Any

from pydantic import BaseModel


class RAGMatch(BaseModel):
    """A stored chunk as returned by a search, lookup or listing.

    Attributes:
        id:             Chunk id (see DocumentIngestor.generate_chunk_id).
        content:        Chunk text.
        metadata:       Payload written at ingestion (source_title, part_number, source, language, tags, ...).
        similarity:     Similarity score from a semantic search. None for keyword-only hits.
        semantic_rank:  Zero-based position in the semantic result list, if present there.
        bm25_rank:      Zero-based position in the keyword result list, if present there.
        combined_score: Weighted rank score after hybrid merging. Lower is better.
    """

    id: str
    content: str = ""
    metadata: dict[str, Any] = {}
    similarity: float | None = None
    semantic_rank: int | None = None
    bm25_rank: int | None = None
    combined_score: float | None = None

    def get_title(self) -> str:
        """Human-readable title for citations."""
        title = self.metadata.get("source_title") or self.id
        part = self.metadata.get("part_number")
        total = self.metadata.get("total_parts")
        if part and total and total > 1:
            return f"{title} (Part {part})"
        return title
