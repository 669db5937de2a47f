"""Ingestion runner entry point.

Loads a JSON file holding a list of documents ({title, content, source,
language, tags?, metadata?}) and ingests them into the configured vector store.

Usage:
    python -m services.rag_ingest.ingest_runner knowledge.json
"""

import argparse
import asyncio
import json

from pydantic import TypeAdapter

from services.rag_ingest.DocumentIngestor import DocumentIngestor
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.document import IngestDocument


def load_documents(path: str) -> list[IngestDocument]:
    """Read and validate the documents file.

    Raises:
        OSError: If the file cannot be read.
        pydantic.ValidationError: If an entry does not match IngestDocument.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return TypeAdapter(list[IngestDocument]).validate_python(raw)


async def main(path: str) -> None:
    """Run the ingestion pipeline for one documents file."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    rag_client = RAGClientManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()

    documents = load_documents(path)
    logger.info("Loaded %d document(s) from %s", len(documents), path)

    try:
        await embed_client.boot()
        await rag_client.boot()
        # the store is required, embeddings fall back to zero vectors
        await rag_client.do_healthcheck()

        ingestor = DocumentIngestor(helper_config=config, rag_client=rag_client, embed_client=embed_client)
        await ingestor.do_ingest_batch(documents)
    finally:
        await embed_client.close()
        await rag_client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ingest knowledge-base documents into the vector store.")
    parser.add_argument("path", help="JSON file with a list of documents")
    args = parser.parse_args()
    asyncio.run(main(args.path))
