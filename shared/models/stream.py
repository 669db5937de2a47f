"""Pydantic models for streamed LLM output.

TokenChunk  : unit emitted by the StreamManager to its sink.
StreamResult: final outcome of one StreamManager invocation.
StreamEvent : frame sent to the browser over the chat SSE endpoint.
"""

import json
import time
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from shared.helper.HelperSSE import format_sse_data


def _now_ms() -> int:
    return int(time.time() * 1000)


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


class TokenChunk(BaseModel):
    """A single emission of the StreamManager.

    Ordering matters: a "done" chunk is always the last emission of a successful stream.
    """

    token: str
    type: Literal["text", "error", "done"]
    timestamp: int = Field(default_factory=_now_ms)
    metadata: dict[str, Any] | None = None


class StreamResult(BaseModel):
    state: StreamState
    full_text: str = ""
    total_tokens: int = 0
    error: str | None = None


class StreamEvent(BaseModel):
    """A chat SSE frame: connected, chunk, summary, escalated, done or error."""

    type: Literal["connected", "chunk", "summary", "escalated", "done", "error"]
    content: str | None = None
    message: str | None = None

    def to_sse(self) -> str:
        return format_sse_data(self.model_dump(exclude_none=True))

    @classmethod
    def from_summary(cls, summary: BaseModel) -> "StreamEvent":
        return cls(type="summary", content=json.dumps(summary.model_dump()))
