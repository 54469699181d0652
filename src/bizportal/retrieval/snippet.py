"""Best-sentence snippet extraction for short channel replies."""

from __future__ import annotations

import re

from bizportal.ingest.chunker import split_sentences
from bizportal.ingest.tokenizer import analyze
from bizportal.retrieval.ranker import SNIPPET_STOP_WORDS, query_terms

_TIME_INTENT_TERMS = frozenset({"hour", "hours", "time", "open", "opening", "close", "closing"})

_OPENING_WORDS = re.compile(r"\b(open|opening|close|closing|hour|hours)\b")
_CLOCK_TIME = re.compile(r"\b\d{1,2}(:\d{2})?\s?(am|pm)\b")
_NUMERIC_RANGE = re.compile(r"\b\d{1,2}(?:\s?[–-]\s?\d{1,2})\b")
_BOILERPLATE = re.compile(r"\b(policy|policies|deposit|cancellation)\b")

_ELLIPSIS = "…"


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 1].rstrip() + _ELLIPSIS


def _score_sentence(
    sentence: str, index: int, terms: set[str], time_intent: bool
) -> float:
    tokens = analyze(sentence)
    if not tokens:
        return -1.0

    matched = [token for token in tokens if token in terms]
    if not matched:
        # Deterministic ordering among non-matches: shorter wins.
        return -len(tokens) * 0.01

    score = len(set(matched)) * 2 + len(matched) / len(tokens)

    lowered = sentence.lower()
    if time_intent:
        if _OPENING_WORDS.search(lowered):
            score += 0.75
        if _CLOCK_TIME.search(lowered):
            score += 1.0
        if _NUMERIC_RANGE.search(lowered):
            score += 0.8

    if _BOILERPLATE.search(lowered):
        score -= 0.4

    return score - index * 0.01


def extract_snippet(text: str, query: str, max_len: int = 200) -> str:
    """Pick the sentence of `text` that best answers `query`.

    A short winner is extended with the following sentence when both fit in
    `max_len`. The result never exceeds `max_len` characters.
    """

    sentences = split_sentences(text)
    if not sentences:
        return _truncate(text.strip(), max_len)

    terms = set(query_terms(query, stop_words=SNIPPET_STOP_WORDS))
    time_intent = not terms.isdisjoint(_TIME_INTENT_TERMS)

    best_index = 0
    best_score = float("-inf")
    for index, sentence in enumerate(sentences):
        score = _score_sentence(sentence, index, terms, time_intent)
        if score > best_score:
            best_index, best_score = index, score

    snippet = sentences[best_index]
    if len(snippet) < max_len * 0.6 and best_index + 1 < len(sentences):
        combined = f"{snippet} {sentences[best_index + 1]}"
        if len(combined) <= max_len:
            snippet = combined

    return _truncate(snippet, max_len)
