"""Server-sent events helpers.

Frames look like ``data: <JSON>\\n\\n``. The same line parser is used for the
upstream LLM stream and for clients reading the chat endpoint.
"""

import json
import logging

SSE_DATA_PREFIX = "data:"


def format_sse_data(payload: dict) -> str:
    """Serialise a payload as one SSE data frame."""
    return f"{SSE_DATA_PREFIX} {json.dumps(payload, ensure_ascii=False)}\n\n"


def parse_sse_data_line(line: str) -> dict | None:
    """Return the JSON payload carried by a ``data:`` line.

    Lines that are not data lines (``event:``, comments, blanks) and the
    ``[DONE]`` sentinel return None.

    Raises:
        ValueError: If the payload is not a JSON object.
    """
    line = line.rstrip("\r")
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    raw = line[len(SSE_DATA_PREFIX):].strip()
    if not raw or raw == "[DONE]":
        return None
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError(f"SSE payload is not a JSON object: {raw[:80]}")
    return payload


class SSEFrameParser:
    """Incremental parser for a chunked SSE body.

    Network reads can cut a frame anywhere, so the trailing partial line is
    kept in a buffer until the next feed().

    Usage::

        parser = SSEFrameParser(logger)
        async for text in response.aiter_text():
            for event in parser.feed(text):
                ...
        events = parser.flush()
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logging = logger
        self._buffer = ""

    def feed(self, data: str) -> list[dict]:
        """Add raw text and return every complete event parsed so far."""
        self._buffer += data
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> list[dict]:
        """Parse whatever is left in the buffer once the body has ended."""
        remaining, self._buffer = self._buffer, ""
        return self._parse_lines([remaining])

    def _parse_lines(self, lines: list[str]) -> list[dict]:
        events: list[dict] = []
        for line in lines:
            try:
                payload = parse_sse_data_line(line)
            except ValueError as exc:
                self.logging.warning("Skipping malformed SSE frame: %s", exc)
                continue
            if payload is not None:
                events.append(payload)
        return events
