"""TF-IDF ranking of a tenant's knowledge chunks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from math import log

from bizportal.ingest.tokenizer import normalize_token, term_freq, tokenize
from bizportal.types import KnowledgeChunk, RankedChunk

# Question words and filler that say nothing about what is being asked.
SNIPPET_STOP_WORDS: frozenset[str] = frozenset(
    {
        "what", "when", "where", "which", "who", "how", "why", "can", "do",
        "does", "is", "are", "your", "you", "me", "please", "tell", "about",
        "any", "give", "need", "info", "information", "kind", "type",
    }
)

QUERY_STOP_WORDS: frozenset[str] = SNIPPET_STOP_WORDS | {
    "am", "was", "were", "be", "been", "could", "would", "should", "will",
    "shall", "might", "may", "us", "did",
}

_SYNONYMS: dict[str, tuple[str, ...]] = {
    "opening": ("open",),
    "opened": ("open",),
    "closing": ("close",),
    "closed": ("close",),
    "hours": ("hour",),
    "service": ("service", "services"),
    "services": ("service", "services"),
}

_SUFFIXES = ("ing", "ed", "ly", "es")


def expand_terms(tokens: Iterable[str]) -> list[str]:
    """Add a small morphological family for every token.

    `opening` also matches `open`, `services` also matches `service` and so
    on. Order is preserved and duplicates dropped.
    """

    expanded: dict[str, None] = {}
    for token in tokens:
        expanded[token] = None
        if len(token) > 4:
            for suffix in _SUFFIXES:
                if token.endswith(suffix):
                    expanded[token[: -len(suffix)]] = None
        if token.endswith("s") and len(token) > 3:
            expanded[token[:-1]] = None
        for synonym in _SYNONYMS.get(token, ()):
            expanded[synonym] = None
    return list(expanded)


def query_terms(query: str, stop_words: frozenset[str] = QUERY_STOP_WORDS) -> list[str]:
    """Analyze a free-text question into the expanded set of search terms."""
    base: list[str] = []
    for raw in tokenize(query):
        if raw in stop_words:
            continue
        token = normalize_token(raw)
        if len(token) > 1 and token not in stop_words:
            base.append(token)
    return expand_terms(base)


def chunk_terms(chunk: KnowledgeChunk) -> dict[str, int]:
    """Stored term frequencies, or freshly computed ones for legacy chunks."""
    if chunk.term_frequencies is not None:
        return chunk.term_frequencies
    return term_freq(chunk.text)


def build_idf(chunk_term_maps: Sequence[dict[str, int]]) -> dict[str, float]:
    """Smoothed inverse document frequency over one tenant's chunk set.

    `idf(t) = ln((N + 1) / (df(t) + 1)) + 1`, which is always positive.
    """

    total = len(chunk_term_maps)
    document_frequencies: dict[str, int] = {}
    for terms in chunk_term_maps:
        for term in terms:
            document_frequencies[term] = document_frequencies.get(term, 0) + 1
    return {
        term: log((total + 1) / (df + 1)) + 1.0
        for term, df in document_frequencies.items()
    }


def rank_chunks_by_tfidf(
    chunks: Sequence[KnowledgeChunk],
    query: str,
    top_k: int = 3,
) -> list[RankedChunk]:
    """Score chunks against `query` and return the best `top_k`.

    Each expanded query term found in a chunk contributes `tf * idf**2`.
    Chunks scoring zero are dropped. Equal scores keep the input order.
    """

    if not chunks or top_k < 1:
        return []

    terms = query_terms(query)
    if not terms:
        return []

    term_maps = [chunk_terms(chunk) for chunk in chunks]
    idf = build_idf(term_maps)

    ranked: list[RankedChunk] = []
    for chunk, frequencies in zip(chunks, term_maps, strict=True):
        score = 0.0
        for term in terms:
            tf = frequencies.get(term, 0)
            if tf:
                weight = idf.get(term, 1.0)
                score += tf * weight * weight
        if score > 0:
            ranked.append(RankedChunk(id=chunk.id, text=chunk.text, score=score))

    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked[:top_k]
