"""Hybrid retrieval.

Runs a semantic and a keyword search concurrently and merges the two ranked
lists with a weighted rank score (lower is better).
"""

import asyncio

from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.RAGMatch import RAGMatch
from shared.helper.HelperConfig import HelperConfig

SEMANTIC_WEIGHT = 0.6
BM25_WEIGHT = 0.4
MISSING_RANK_PENALTY = 10


def merge_ranked_results(semantic: list[RAGMatch], keyword: list[RAGMatch], limit: int = 5) -> list[RAGMatch]:
    """Merge two ranked result lists into one.

    Each id gets its zero-based position in each list. An id missing from a
    list is ranked MISSING_RANK_PENALTY there. The combined score is
    ``0.6 * semantic_rank + 0.4 * bm25_rank``; results are sorted ascending
    and ties keep first-seen order (semantic list first).

    Args:
        semantic (list[RAGMatch]): Semantic matches, best first.
        keyword (list[RAGMatch]): Keyword matches, best first.
        limit (int): Maximum number of merged results.

    Returns:
        list[RAGMatch]: Merged results with semantic_rank, bm25_rank and combined_score set.
    """
    merged: dict[str, RAGMatch] = {}
    for rank, match in enumerate(semantic):
        if match.id not in merged:
            merged[match.id] = match.model_copy(update={"semantic_rank": rank})
    for rank, match in enumerate(keyword):
        existing = merged.get(match.id)
        if existing is None:
            merged[match.id] = match.model_copy(update={"bm25_rank": rank})
        elif existing.bm25_rank is None:
            existing.bm25_rank = rank

    for match in merged.values():
        semantic_rank = match.semantic_rank if match.semantic_rank is not None else MISSING_RANK_PENALTY
        bm25_rank = match.bm25_rank if match.bm25_rank is not None else MISSING_RANK_PENALTY
        match.combined_score = SEMANTIC_WEIGHT * semantic_rank + BM25_WEIGHT * bm25_rank

    return sorted(merged.values(), key=lambda m: m.combined_score)[:limit]


class HybridRetriever:
    def __init__(self, helper_config: HelperConfig, rag_client: RAGClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client

    async def do_hybrid_search(self, query: str, query_embedding: list[float], limit: int = 5) -> list[RAGMatch]:
        """Search by vector and by keywords at the same time and merge the rankings.

        Args:
            query (str): The raw query text, used for the keyword search.
            query_embedding (list[float]): The query vector, used for the semantic search.
            limit (int): Maximum number of results per search and after merging.

        Returns:
            list[RAGMatch]: Merged results, best first.

        Raises:
            Exception: If either search fails.
        """
        semantic, keyword = await asyncio.gather(
            self._rag_client.do_semantic_search(query_embedding, limit=limit),
            self._rag_client.do_keyword_search(query, limit=limit),
        )
        results = merge_ranked_results(semantic, keyword, limit=limit)
        self.logging.debug(
            "Hybrid search returned %d result(s) (%d semantic, %d keyword).",
            len(results), len(semantic), len(keyword),
        )
        return results
