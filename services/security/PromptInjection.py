"""Heuristic prompt-injection screening for chat messages.

Patterns are checked from most to least specific; the first hit decides the
confidence. Only "high" confidence results are meant to be rejected outright.
"""

import re
from typing import Literal

from pydantic import BaseModel

MAX_MESSAGE_LENGTH = 5000
SANITIZED_MAX_LENGTH = 2000

HIGH_CONFIDENCE_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions?", re.IGNORECASE),
    re.compile(r"disregard\s+(all\s+)?(previous|prior)\s+instructions?", re.IGNORECASE),
    re.compile(r"forget\s+(all\s+)?(previous|prior)\s+instructions?", re.IGNORECASE),
    re.compile(r"new\s+instructions?:", re.IGNORECASE),
    re.compile(r"system\s*:\s*", re.IGNORECASE),
    re.compile(r"you\s+are\s+now\s+(a|an)\s+", re.IGNORECASE),
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\{\{.*\}\}"),
    re.compile(r"<\s*iframe", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"\bon(load|error|click)\s*=", re.IGNORECASE),
]

MEDIUM_CONFIDENCE_PATTERNS = [
    re.compile(r"act\s+as\s+if", re.IGNORECASE),
    re.compile(r"pretend\s+(you|to)\s+are", re.IGNORECASE),
    re.compile(r"role.*play", re.IGNORECASE),
    re.compile(r"(show|reveal|tell)\s+me\s+(the|your)\s+(system\s+)?prompt", re.IGNORECASE),
    re.compile(r"what\s+(are|is)\s+your\s+instructions?", re.IGNORECASE),
    re.compile(r"bypass\s+your", re.IGNORECASE),
    re.compile(r"override\s+your", re.IGNORECASE),
    re.compile(r"your\s+(rules|guidelines)\s+(are|should)", re.IGNORECASE),
]

BASE64_LIKE = re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class InjectionCheck(BaseModel):
    is_suspicious: bool
    reason: str | None = None
    confidence: Literal["low", "medium", "high"] = "low"


def detect_prompt_injection(message: str) -> InjectionCheck:
    """Screen a user message for common injection techniques.

    Returns:
        InjectionCheck: is_suspicious with the matching reason and a confidence level.
    """
    if len(message) > MAX_MESSAGE_LENGTH:
        return InjectionCheck(is_suspicious=True, reason="Message exceeds reasonable length", confidence="high")

    for pattern in HIGH_CONFIDENCE_PATTERNS:
        if pattern.search(message):
            return InjectionCheck(
                is_suspicious=True,
                reason=f"High-confidence injection pattern: {pattern.pattern}",
                confidence="high",
            )

    for pattern in MEDIUM_CONFIDENCE_PATTERNS:
        if pattern.search(message):
            return InjectionCheck(
                is_suspicious=True,
                reason=f"Medium-confidence injection pattern: {pattern.pattern}",
                confidence="medium",
            )

    if BASE64_LIKE.search(message):
        return InjectionCheck(is_suspicious=True, reason="Suspicious Base64-like encoding detected", confidence="medium")

    words = message.split()
    if len(words) > 20 and len(set(words)) / len(words) < 0.3:
        return InjectionCheck(is_suspicious=True, reason="Excessive word repetition detected", confidence="low")

    if CONTROL_CHARS.search(message):
        return InjectionCheck(is_suspicious=True, reason="Control characters detected", confidence="medium")

    return InjectionCheck(is_suspicious=False)


def sanitize_message(message: str) -> str:
    """Strip control characters and surrounding whitespace, then cap the length."""
    return CONTROL_CHARS.sub("", message.strip())[:SANITIZED_MAX_LENGTH]
