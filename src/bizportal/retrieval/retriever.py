"""Tenant-scoped lexical retriever."""

from __future__ import annotations

import structlog

from bizportal.config import RetrievalConfig
from bizportal.retrieval.ranker import rank_chunks_by_tfidf
from bizportal.retrieval.snippet import extract_snippet
from bizportal.storage.store import ChunkStore
from bizportal.types import RankedChunk

logger = structlog.get_logger(__name__)


class TfIdfRetriever:
    """Loads one tenant's chunk set and ranks it against a query.

    IDF is computed per call over the tenant's current chunks only, so
    scores never depend on another tenant's content.
    """

    def __init__(self, store: ChunkStore, config: RetrievalConfig | None = None) -> None:
        self.store = store
        self.config = config or RetrievalConfig()

    def search(
        self,
        tenant_id: str,
        query: str,
        *,
        top_k: int | None = None,
    ) -> list[RankedChunk]:
        final_k = top_k or self.config.default_top_k
        chunks = self.store.list_chunks(tenant_id)
        if not chunks:
            return []

        ranked = rank_chunks_by_tfidf(chunks, query, final_k)
        logger.debug(
            "retrieval.ranked",
            tenant_id=tenant_id,
            candidates=len(chunks),
            returned=len(ranked),
        )
        return ranked

    def snippet(self, chunk: RankedChunk, query: str) -> str:
        return extract_snippet(chunk.text, query, self.config.snippet_max_len)
