"""Extraction of the ``REQUEST_SUMMARY = {...}`` block the assistant appends to each answer.

The block contains a nested ``action_button`` object, so its end is found by
balancing braces (outside JSON strings) rather than by the first "}".
"""

import json
import logging
import re

from pydantic import ValidationError

from shared.models.chat import RequestSummary

SUMMARY_MARKER = re.compile(r"REQUEST_SUMMARY\s*=\s*")
_EMPTY_FENCE = re.compile(r"```(?:json)?\s*```")
_DANGLING_FENCE = re.compile(r"```(?:json)?\s*$")


def _find_object_end(text: str, start: int) -> int | None:
    """Return the index just past the JSON object opening at text[start], or None if unterminated."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        ch = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def find_summary_span(text: str) -> tuple[int, int, int | None] | None:
    """Locate the summary block.

    Returns:
        tuple | None: (marker start, object start, object end) or None if there is no
            marker followed by "{". The object end is None while the block is unterminated.
    """
    marker = SUMMARY_MARKER.search(text)
    if marker is None or marker.end() >= len(text) or text[marker.end()] != "{":
        return None
    return marker.start(), marker.end(), _find_object_end(text, marker.end())


def extract_summary(text: str, logger: logging.Logger) -> RequestSummary | None:
    """Parse the summary block of an assistant answer.

    A missing, unterminated or malformed block yields None; malformed blocks
    are logged as a warning on logger.
    """
    span = find_summary_span(text)
    if span is None or span[2] is None:
        return None
    _, obj_start, obj_end = span
    try:
        raw = json.loads(text[obj_start:obj_end])
        if isinstance(raw, dict):
            # the model sometimes writes the string "null" instead of null
            raw = {key: (None if value == "null" else value) for key, value in raw.items()}
        return RequestSummary.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Failed to parse REQUEST_SUMMARY: %s", e)
        return None


def clean_response(text: str) -> str:
    """Remove the summary block (and its code fence) from an assistant answer.

    An unterminated block, as seen mid-stream, is cut from the marker to the end.
    """
    span = find_summary_span(text)
    if span is None:
        marker = SUMMARY_MARKER.search(text)
        if marker is None:
            return text.strip()
        span = (marker.start(), marker.end(), None)

    marker_start, _, obj_end = span
    head = text[:marker_start]
    if obj_end is None:
        return _DANGLING_FENCE.sub("", head.rstrip()).strip()
    cleaned = head + text[obj_end:]
    return _EMPTY_FENCE.sub("", cleaned).strip()
