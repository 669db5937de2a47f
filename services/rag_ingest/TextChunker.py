"""Sentence-aware text chunking.

Tokens are whitespace-delimited words. Chunks never split a sentence, so a
single sentence longer than the chunk size becomes one oversized chunk.
"""

import re

CHUNK_SIZE = 500    # words per chunk
CHUNK_OVERLAP = 50  # words repeated at the start of the next chunk

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Split text after ".", "!" or "?" followed by whitespace."""
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s.strip()]


def chunk_content(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> list[str]:
    """Split a document into overlapping, sentence-aligned chunks.

    Sentences are accumulated until the next one would push the running chunk
    over chunk_size words. The chunk is then closed and the next one starts
    with its last overlap words, fewer if the next sentence would not fit
    otherwise. Only a sentence longer than chunk_size on its own yields an
    oversized chunk.

    Args:
        text (str): The full document text.
        chunk_size (int): Maximum words per chunk, unless one sentence is longer.
        overlap (int): Words carried from the end of one chunk into the next.

    Returns:
        list[str]: Chunks in document order. Empty for empty or whitespace-only text.

    Raises:
        ValueError: If chunk_size <= 0, overlap < 0 or overlap >= chunk_size.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}.")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(f"overlap must be in [0, chunk_size), got {overlap} for chunk_size {chunk_size}.")

    chunks: list[str] = []
    current: list[str] = []
    for sentence in split_sentences(text):
        words = sentence.split()
        if current and len(current) + len(words) > chunk_size:
            chunks.append(" ".join(current))
            carried = min(overlap, chunk_size - len(words))
            current = current[-carried:] if carried > 0 else []
        current.extend(words)

    if current:
        chunks.append(" ".join(current))
    return chunks
