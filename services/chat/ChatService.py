"""Chat orchestration.

Per turn: embed the last user message, retrieve knowledge-base chunks with
the hybrid retriever, fold them into the system prompt and ask the LLM. When
the engine supports tool use, the non-streaming turn runs through the
ToolOrchestrator. A turn whose summary asks for staff follow-up is handed to
the EscalationService. The streaming variant relays tokens as SSE frames
through a StreamManager.
"""

import asyncio
from typing import AsyncIterator

from services.chat.PromptBuilder import build_system_prompt
from services.chat.ResponseBuilder import ResponseBuilder, format_response_with_suggestions
from services.chat.SummaryExtractor import clean_response, extract_summary
from services.retrieval.HybridRetriever import HybridRetriever
from services.streaming.StreamManager import TIMEOUT_MESSAGE, StreamManager
from services.support.EscalationService import EscalationService
from services.tools.ToolOrchestrator import ToolOrchestrator
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.models.RAGMatch import RAGMatch
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatRequest, ChatResponse, RequestSummary
from shared.models.stream import StreamEvent, StreamState, TokenChunk
from shared.models.support import SupportTicket

RETRIEVAL_LIMIT = 6

# upstream details stay in the log
STREAM_ERROR_MESSAGE = "Stream interrupted"


class ChatService:
    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        embed_client: EmbedClientInterface,
        retriever: HybridRetriever,
        retrieval_limit: int = RETRIEVAL_LIMIT,
        tool_orchestrator: ToolOrchestrator | None = None,
        escalation_service: EscalationService | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._llm_client = llm_client
        self._embed_client = embed_client
        self._retriever = retriever
        self._retrieval_limit = retrieval_limit
        self._tool_orchestrator = tool_orchestrator
        self._escalation_service = escalation_service

    ##########################################
    ############### RETRIEVAL ################
    ##########################################

    async def do_retrieve_context(self, query: str) -> list[RAGMatch]:
        """Fetch knowledge-base chunks for the query.

        Retrieval is best effort: a store failure is logged and the turn
        continues without context.
        """
        embedding = await self._embed_client.do_embed_or_zero(query)
        try:
            return await self._retriever.do_hybrid_search(query, embedding, limit=self._retrieval_limit)
        except Exception as e:
            self.logging.error("Knowledge-base retrieval failed, answering without context: %s", e)
            return []

    ##########################################
    ############### ESCALATION ###############
    ##########################################

    async def do_escalate(self, request: ChatRequest, summary: RequestSummary | None) -> SupportTicket | None:
        if self._escalation_service is None:
            return None
        return await self._escalation_service.do_escalate(request, summary)

    ##########################################
    ################# CHAT ###################
    ##########################################

    async def do_chat(self, request: ChatRequest) -> ChatResponse:
        """Answer one turn without streaming.

        Returns:
            ChatResponse: The cleaned answer with the action button appended,
                the parsed summary, the titles of the chunks used as context,
                the tools called and the ticket opened for staff, if any.

        Raises:
            Exception: If the LLM request fails.
        """
        matches = await self.do_retrieve_context(request.get_last_user_message())
        system_prompt = build_system_prompt(matches, language=request.language)
        messages = [m.model_dump() for m in request.messages]

        tools_used: list[str] = []
        if self._tool_orchestrator is not None and self._tool_orchestrator.is_available():
            run = await self._tool_orchestrator.do_run(messages, system_prompt=system_prompt)
            raw_answer = run.final_text
            tools_used = [result.tool_name for result in run.tools_used]
        else:
            raw_answer = await self._llm_client.do_chat(messages, system_prompt=system_prompt)
        summary = extract_summary(raw_answer, self.logging)

        builder = ResponseBuilder().add_text(clean_response(raw_answer))
        if summary and summary.action_button:
            button = summary.action_button
            builder.add_action(f"{button.text}: {button.url}", metadata=button.model_dump())
        for title in dict.fromkeys(match.get_title() for match in matches):
            builder.add_source(title)
        message, sources = builder.build_with_sources()

        ticket = await self.do_escalate(request, summary)
        if self._escalation_service is not None and self._escalation_service.needs_escalation(summary) and not request.contact_email:
            message = format_response_with_suggestions(message, [self._escalation_service.get_contact_hint(request.language)])

        return ChatResponse(
            message=message,
            summary=summary,
            sources=sources,
            tools_used=tools_used,
            ticket_id=ticket.id if ticket else None,
        )

    def create_stream_manager(self) -> StreamManager:
        return StreamManager(helper_config=self._helper_config, llm_client=self._llm_client)

    async def do_chat_stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """Answer one turn as a sequence of SSE frames.

        Frames: "connected", then one "chunk" per relayed text chunk, then
        "summary" (if the answer carried one), "escalated" (if a ticket was
        opened) and "done"; or an "error" frame if the stream failed. Closing
        the generator cancels the upstream stream and waits for it to stop.

        Yields:
            str: Encoded SSE frames.
        """
        yield StreamEvent(type="connected").to_sse()

        matches = await self.do_retrieve_context(request.get_last_user_message())
        system_prompt = build_system_prompt(matches, language=request.language)
        messages = [m.model_dump() for m in request.messages]

        queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()

        async def sink(chunk: TokenChunk) -> None:
            if chunk.type == "text":
                await queue.put(StreamEvent(type="chunk", content=chunk.token))
            elif chunk.type == "error":
                message = chunk.token if chunk.token == TIMEOUT_MESSAGE else STREAM_ERROR_MESSAGE
                await queue.put(StreamEvent(type="error", message=message))

        async def run() -> None:
            try:
                result = await self.create_stream_manager().do_stream(messages, sink, system_prompt=system_prompt)
                if result.state == StreamState.DONE:
                    summary = extract_summary(result.full_text, self.logging)
                    if summary:
                        await queue.put(StreamEvent.from_summary(summary))
                    ticket = await self.do_escalate(request, summary)
                    if ticket:
                        await queue.put(StreamEvent(type="escalated", content=ticket.id))
                    await queue.put(StreamEvent(type="done"))
            except Exception as e:
                self.logging.error("Chat stream failed: %s", e)
                await queue.put(StreamEvent(type="error", message=STREAM_ERROR_MESSAGE))
            finally:
                await queue.put(None)

        task = asyncio.create_task(run())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event.to_sse()
        finally:
            if not task.done():
                self.logging.info("Chat stream closed by the client, cancelling upstream.")
                task.cancel()
                await asyncio.wait({task})
