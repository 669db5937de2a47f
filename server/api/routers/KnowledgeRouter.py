"""Knowledge-base administration: ingestion, search, listing and deletion of chunks."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from services.rag_ingest.DocumentIngestor import DocumentIngestor
from services.retrieval.HybridRetriever import HybridRetriever
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.dependencies.auth import verify_api_key
from shared.models.document import DocumentLanguage, DocumentSource, IngestDocument
from shared.models.search import SearchRequest, SearchResponse

knowledge_router = APIRouter(
    prefix="/knowledge",
    tags=["Knowledge"],
    dependencies=[Depends(verify_api_key)],
)


def _upstream_error(request: Request, action: str, e: Exception) -> HTTPException:
    request.app.state.logging.error("Knowledge base %s failed: %s", action, e)
    return HTTPException(status_code=502, detail=f"Knowledge base {action} failed.")


@knowledge_router.post("/documents", status_code=201)
async def ingest_document(request: Request, body: IngestDocument) -> JSONResponse:
    """Chunk, embed and store one document.

    Returns:
        JSONResponse: {"title", "chunks", "ids", "embedding_fallbacks"}.
    """
    ingestor: DocumentIngestor = request.app.state.ingestor
    try:
        records = await ingestor.do_ingest_document(
            title=body.title,
            content=body.content,
            source=body.source,
            language=body.language,
            tags=body.tags,
            metadata=body.metadata,
        )
    except Exception as e:
        raise _upstream_error(request, "ingestion", e)
    return JSONResponse(
        status_code=201,
        content={
            "title": body.title,
            "chunks": len(records),
            "ids": [record.id for record in records],
            "embedding_fallbacks": sum(1 for record in records if record.embedding_fallback),
        },
    )


@knowledge_router.post("/search")
async def search_documents(request: Request, body: SearchRequest) -> JSONResponse:
    """Run a hybrid search and return the merged ranking."""
    embed_client: EmbedClientInterface = request.app.state.embed_client
    retriever: HybridRetriever = request.app.state.retriever
    embedding = await embed_client.do_embed_or_zero(body.query)
    try:
        results = await retriever.do_hybrid_search(body.query, embedding, limit=body.limit)
    except Exception as e:
        raise _upstream_error(request, "search", e)
    response = SearchResponse(query=body.query, results=results, total=len(results))
    return JSONResponse(content=response.model_dump())


@knowledge_router.get("/documents")
async def list_documents(
    request: Request,
    source: DocumentSource | None = None,
    language: DocumentLanguage | None = None,
) -> JSONResponse:
    """List stored chunks, optionally filtered by source and language."""
    rag_client: RAGClientInterface = request.app.state.rag_client
    try:
        docs = await rag_client.do_list_documents(source=source, language=language)
    except Exception as e:
        raise _upstream_error(request, "listing", e)
    return JSONResponse(content={"documents": [doc.model_dump() for doc in docs], "total": len(docs)})


@knowledge_router.get("/documents/{doc_id}")
async def get_document(request: Request, doc_id: str) -> JSONResponse:
    rag_client: RAGClientInterface = request.app.state.rag_client
    try:
        doc = await rag_client.do_get_document(doc_id)
    except Exception as e:
        raise _upstream_error(request, "lookup", e)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"Document '{doc_id}' not found.")
    return JSONResponse(content=doc.model_dump())


@knowledge_router.delete("/documents/{doc_id}")
async def delete_document(request: Request, doc_id: str) -> JSONResponse:
    rag_client: RAGClientInterface = request.app.state.rag_client
    try:
        await rag_client.do_delete_document(doc_id)
    except Exception as e:
        raise _upstream_error(request, "deletion", e)
    request.app.state.logging.info("Deleted knowledge-base chunk %s", doc_id)
    return JSONResponse(content={"deleted": doc_id})


@knowledge_router.get("/stats")
async def get_stats(request: Request) -> JSONResponse:
    """Chunk counts per source and per language."""
    rag_client: RAGClientInterface = request.app.state.rag_client
    try:
        stats = await rag_client.do_get_stats()
    except Exception as e:
        raise _upstream_error(request, "stats", e)
    return JSONResponse(content=stats.model_dump())
