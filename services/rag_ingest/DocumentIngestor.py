"""Ingestion pipeline.

Splits a document into chunks, embeds each chunk and upserts it into the
vector store with a back-reference to its source title.
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Any

from services.rag_ingest.TextChunker import CHUNK_OVERLAP, CHUNK_SIZE, chunk_content
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ChunkRecord, DocumentLanguage, DocumentSource, IngestDocument


def slugify(title: str) -> str:
    """Lower-case the title and replace whitespace runs with "-"."""
    return re.sub(r"\s+", "-", title.strip().lower())


def generate_chunk_id(title: str, part_number: int) -> str:
    """Build the deterministic id of one chunk.

    Format: ``<slug>-<part_number>-<first 8 hex chars of sha256(title + part_number)>``.
    part_number is 1-based. The same title and part always produce the same id,
    so re-ingesting a document overwrites its chunks.
    """
    digest = hashlib.sha256(f"{title}{part_number}".encode("utf-8")).hexdigest()[:8]
    return f"{slugify(title)}-{part_number}-{digest}"


class DocumentIngestor:
    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
        chunk_size: int = CHUNK_SIZE,
        overlap: int = CHUNK_OVERLAP,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client
        self._chunk_size = chunk_size
        self._overlap = overlap

    ##########################################
    ################ INGEST ##################
    ##########################################

    async def do_ingest_document(
        self,
        title: str,
        content: str,
        source: DocumentSource,
        language: DocumentLanguage,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[ChunkRecord]:
        """Chunk, embed and store one document.

        Embedding failures do not stop ingestion; the chunk is stored with a
        zero vector. A store failure aborts the document and propagates.

        Args:
            title (str): Source title shared by all chunks.
            content (str): Full document text.
            source (DocumentSource): Document category.
            language (DocumentLanguage): Document language.
            tags (list[str] | None): Tags copied onto every chunk.
            metadata (dict[str, Any] | None): Extra payload merged into every chunk's metadata.

        Returns:
            list[ChunkRecord]: The stored chunks in document order.

        Raises:
            Exception: If the vector store rejects an upsert.
        """
        tags = list(tags or [])
        chunks = chunk_content(content, chunk_size=self._chunk_size, overlap=self._overlap)
        if not chunks:
            self.logging.warning("Document '%s' has no content, nothing to ingest.", title)
            return []

        total_parts = len(chunks)
        chunk_tags = tags + [source]
        records: list[ChunkRecord] = []
        for part_number, chunk in enumerate(chunks, start=1):
            chunk_id = generate_chunk_id(title, part_number)
            embedding = await self._embed_client.do_embed_or_zero(chunk)
            chunk_metadata = {
                "source_title": title,
                "part_number": part_number,
                "total_parts": total_parts,
                "source": source,
                "language": language,
                "tags": tags,
                **(metadata or {}),
            }
            await self._rag_client.do_index_document(chunk_id, chunk, embedding, chunk_metadata)

            record = ChunkRecord(
                id=chunk_id,
                title=f"{title} (Part {part_number})",
                content=chunk,
                source=source,
                language=language,
                tags=chunk_tags,
                last_updated=datetime.now(timezone.utc),
                embedding=embedding,
                metadata=chunk_metadata,
                source_title=title,
                part_number=part_number,
                total_parts=total_parts,
            )
            if record.embedding_fallback:
                self.logging.warning("Chunk '%s' stored with a zero vector.", chunk_id)
            records.append(record)

        self.logging.info("Ingested '%s' as %d chunk(s).", title, total_parts)
        return records

    async def do_ingest_batch(self, documents: list[IngestDocument]) -> list[ChunkRecord]:
        """Ingest documents one after another.

        The first failure aborts the remaining documents and propagates;
        documents ingested before it stay stored.

        Returns:
            list[ChunkRecord]: All stored chunks, in input order.
        """
        records: list[ChunkRecord] = []
        for index, doc in enumerate(documents, start=1):
            self.logging.debug("Ingesting document %d/%d: %s", index, len(documents), doc.title)
            records.extend(
                await self.do_ingest_document(
                    title=doc.title,
                    content=doc.content,
                    source=doc.source,
                    language=doc.language,
                    tags=doc.tags,
                    metadata=doc.metadata,
                )
            )
        self.logging.info("Batch ingestion complete: %d document(s), %d chunk(s).", len(documents), len(records), color="green")
        return records
