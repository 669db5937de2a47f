"""Relays LLM tokens to a sink as TokenChunks.

State machine: IDLE -> STREAMING -> DONE | ERROR. An instance handles exactly
one chat turn.

Emission order on success: text chunks in upstream order, then one "done"
chunk. On failure: the text chunks sent so far, then one "error" chunk. No
exception from the upstream stream escapes do_stream().
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.stream import StreamResult, StreamState, TokenChunk

TokenSink = Callable[[TokenChunk], Awaitable[None]]

TIMEOUT_MESSAGE = "Stream timeout: No tokens received"


class StreamManager:
    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        timeout_ms: int | None = None,
        buffer_size: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self.timeout_ms = timeout_ms if timeout_ms is not None else int(helper_config.get_number_val("STREAM_TIMEOUT_MS", default=60000))
        # 0 emits every token as its own chunk, > 0 batches text up to that many characters
        self.buffer_size = buffer_size if buffer_size is not None else int(helper_config.get_number_val("STREAM_BUFFER_SIZE", default=0))

        self.state = StreamState.IDLE
        self._token_count = 0
        self._full_text = ""
        self._buffer = ""

    ##########################################
    ################ STREAM ##################
    ##########################################

    async def do_stream(self, messages: list[dict], sink: TokenSink, system_prompt: str | None = None) -> StreamResult:
        """Stream one LLM answer into the sink.

        Only the first token is guarded by the timeout; once a token arrived the
        stream may take as long as the upstream needs.

        Args:
            messages (list[dict]): Conversation turns forwarded to the LLM.
            sink (TokenSink): Async callback receiving every TokenChunk.
            system_prompt (str | None): Optional system instructions.

        Returns:
            StreamResult: Final state, accumulated text and token count.

        Raises:
            RuntimeError: If the instance was already used.
        """
        if self.state != StreamState.IDLE:
            raise RuntimeError(f"StreamManager is single-use, current state is '{self.state.value}'.")
        self.state = StreamState.STREAMING

        upstream = self._llm_client.do_chat_stream(messages, system_prompt=system_prompt)
        try:
            try:
                token = await asyncio.wait_for(anext(upstream, None), timeout=self.timeout_ms / 1000)
            except asyncio.TimeoutError:
                self.logging.warning("No token received within %d ms, aborting stream.", self.timeout_ms)
                return await self._fail(sink, TIMEOUT_MESSAGE)

            while token is not None:
                await self._on_token(token, sink)
                token = await anext(upstream, None)
        except Exception as e:
            self.logging.error("Stream error after %d token(s): %s", self._token_count, e)
            return await self._fail(sink, str(e) or e.__class__.__name__)
        finally:
            await self._close_upstream(upstream)

        await self._flush(sink)
        await sink(
            TokenChunk(
                token="",
                type="done",
                metadata={"total_tokens": self._token_count, "full_text": self._full_text},
            )
        )
        self.state = StreamState.DONE
        self.logging.debug("Stream finished with %d token(s).", self._token_count)
        return StreamResult(state=self.state, full_text=self._full_text, total_tokens=self._token_count)

    ##########################################
    ################ HELPERS #################
    ##########################################

    async def _on_token(self, token: str, sink: TokenSink) -> None:
        self._token_count += 1
        self._full_text += token
        if self.buffer_size <= 0:
            await sink(TokenChunk(token=token, type="text", metadata={"token_count": self._token_count}))
            return
        self._buffer += token
        if len(self._buffer) >= self.buffer_size:
            await self._flush(sink)

    async def _flush(self, sink: TokenSink) -> None:
        if not self._buffer:
            return
        text, self._buffer = self._buffer, ""
        await sink(TokenChunk(token=text, type="text", metadata={"token_count": self._token_count}))

    async def _fail(self, sink: TokenSink, message: str) -> StreamResult:
        self.state = StreamState.ERROR
        self._buffer = ""
        await sink(TokenChunk(token=message, type="error"))
        return StreamResult(
            state=self.state,
            full_text=self._full_text,
            total_tokens=self._token_count,
            error=message,
        )

    async def _close_upstream(self, upstream: AsyncIterator[str]) -> None:
        aclose = getattr(upstream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            self.logging.debug("Closing the upstream stream raised: %s", e)
