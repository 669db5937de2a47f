"""Chat router: JSON and SSE endpoints for the support widget."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from services.chat.ChatService import ChatService
from services.security.PromptInjection import detect_prompt_injection, sanitize_message
from shared.dependencies.auth import enforce_chat_rate_limit
from shared.models.chat import ChatRequest

chat_router = APIRouter(prefix="/api/chat", tags=["Chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _reject_injection(request: Request, body: ChatRequest) -> None:
    """Raise 400 if the latest user message looks like a prompt-injection attempt.

    Medium and low confidence hits are only logged.
    """
    check = detect_prompt_injection(body.get_last_user_message())
    if not check.is_suspicious:
        return
    request.app.state.logging.warning(
        "Suspicious chat message (%s confidence): %s", check.confidence, check.reason
    )
    if check.confidence == "high":
        raise HTTPException(status_code=400, detail="Your message could not be processed.")


def _sanitize(body: ChatRequest) -> ChatRequest:
    messages = [
        message.model_copy(update={"content": sanitize_message(message.content) or message.content})
        for message in body.messages
    ]
    return body.model_copy(update={"messages": messages})


@chat_router.post("", dependencies=[Depends(enforce_chat_rate_limit)])
async def handle_chat(request: Request, body: ChatRequest) -> JSONResponse:
    """Answer the conversation in one response.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        body (ChatRequest): The conversation, last message first to answer.

    Returns:
        JSONResponse: ChatResponse with message, summary and sources.

    Raises:
        HTTPException: 400 for rejected messages, 502 if the LLM call fails.
    """
    _reject_injection(request, body)
    chat_service: ChatService = request.app.state.chat_service
    try:
        result = await chat_service.do_chat(_sanitize(body))
    except Exception as e:
        request.app.state.logging.error("Chat request failed: %s", e)
        raise HTTPException(status_code=502, detail="The assistant is unavailable. Please try again later.")
    return JSONResponse(content=result.model_dump())


@chat_router.post("/stream", dependencies=[Depends(enforce_chat_rate_limit)])
async def handle_chat_stream(request: Request, body: ChatRequest) -> StreamingResponse:
    """Stream the answer as server-sent events.

    Frames: {"type":"connected"}, {"type":"chunk","content":...},
    {"type":"summary","content":...}, {"type":"escalated","content":<ticket id>},
    {"type":"done"} or {"type":"error","message":...}.
    """
    _reject_injection(request, body)
    chat_service: ChatService = request.app.state.chat_service
    return StreamingResponse(
        chat_service.do_chat_stream(_sanitize(body)),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
