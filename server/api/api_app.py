"""FastAPI application entry point for the Tasty Food support bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from server.api.routers.ChatRouter import chat_router
from server.api.routers.KnowledgeRouter import knowledge_router
from server.api.routers.MenuRouter import menu_router
from services.chat.ChatService import ChatService
from services.menu.MenuCache import MenuCache
from services.rag_ingest.DocumentIngestor import DocumentIngestor
from services.retrieval.HybridRetriever import HybridRetriever
from services.security.RateLimiter import RateLimiter
from services.support.EscalationService import EscalationService
from services.tools.ToolOrchestrator import ToolOrchestrator
from services.tools.ToolRegistry import ToolRegistry
from services.tools.branch_tools import register_branch_tools
from services.tools.ticket_tools import register_ticket_tools
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.menu.MenuClientHttp import MenuClientHttp
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.support.SupportClientManager import SupportClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = setup_logging()
    app.state.config = HelperConfig(logger=app.state.logging)

    # Initialise clients
    embed_client = EmbedClientManager(helper_config=app.state.config).get_client()
    rag_client = RAGClientManager(helper_config=app.state.config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.config).get_client()
    menu_client = MenuClientHttp(helper_config=app.state.config)
    support_client = SupportClientManager(helper_config=app.state.config).get_client()
    clients = [embed_client, rag_client, llm_client, menu_client, support_client]
    for client in clients:
        await client.boot()

    # the vector store is required; embeddings fail open and the LLM is checked per request
    await rag_client.do_healthcheck()

    # Wire up services
    app.state.embed_client = embed_client
    app.state.rag_client = rag_client
    app.state.retriever = HybridRetriever(helper_config=app.state.config, rag_client=rag_client)
    app.state.ingestor = DocumentIngestor(
        helper_config=app.state.config,
        rag_client=rag_client,
        embed_client=embed_client,
    )
    app.state.tool_registry = ToolRegistry(helper_config=app.state.config)
    if app.state.config.get_bool_val("CHAT_TOOLS_ENABLED", default=True):
        register_branch_tools(app.state.tool_registry, tz_name=app.state.config.get_string_val("TIMEZONE", default="Europe/Brussels"))
        register_ticket_tools(app.state.tool_registry, support_client)
    app.state.chat_service = ChatService(
        helper_config=app.state.config,
        llm_client=llm_client,
        embed_client=embed_client,
        retriever=app.state.retriever,
        tool_orchestrator=ToolOrchestrator(helper_config=app.state.config, llm_client=llm_client, registry=app.state.tool_registry),
        escalation_service=EscalationService(helper_config=app.state.config, support_client=support_client),
    )
    app.state.menu_cache = MenuCache(helper_config=app.state.config, menu_client=menu_client)
    app.state.rate_limiter = RateLimiter(helper_config=app.state.config)

    app.state.logging.info("Support bridge API ready.", color="green")
    yield

    # Shutdown
    for client in clients:
        if client.is_booted():
            await client.close()
    app.state.logging.info("Support bridge API shut down.")


app = FastAPI(
    title="Tasty Food Support Bridge",
    description="Retrieval-augmented support chat, knowledge base and menu API for the Tasty Food website.",
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    request.app.state.logging.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request format"})


@app.get("/health", tags=["Health"])
async def health() -> dict:
    return {"status": "ok", "version": app_version}


app.include_router(chat_router)
app.include_router(knowledge_router)
app.include_router(menu_router)


# Server Start
if __name__ == "__main__":
    # start server
    import uvicorn
    logging = setup_logging()
    logging.info(f"Starting support bridge API v{app_version} from root dir: {os.getenv('ROOT_DIR', os.getcwd())} on port 8000...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
