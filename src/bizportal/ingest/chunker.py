"""Sentence packing with character bounds and overlap."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from bizportal.config import ChunkingConfig

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
# Sentence end followed by whitespace and something that looks like the start
# of a new sentence. Abbreviations such as "Dr. Smith" will over-split.
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9])")


def split_paragraphs(text: str) -> list[str]:
    return [part.strip() for part in _PARAGRAPH_SPLIT.split(text) if part.strip()]


def split_sentences(paragraph: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_SPLIT.split(paragraph) if part.strip()]


@dataclass(slots=True)
class _ChunkState:
    parts: list[str] = field(default_factory=list)
    length: int = 0

    def add(self, text: str) -> None:
        self.length += len(text) + (1 if self.parts else 0)
        self.parts.append(text)

    def cost(self, text: str) -> int:
        return len(text) + (1 if self.parts else 0)


class SentencePackingChunker:
    """Packs sentences into knowledge chunks of roughly `max_chars`.

    Design notes:
    1. Paragraphs first, then sentences.
       Text is split on blank lines and each paragraph on sentence
       boundaries, so a chunk never starts mid-sentence.

    2. Greedy packing.
       Sentences are appended to a buffer while the buffer stays within
       `max_chars`. When the next sentence does not fit, the buffer is
       flushed and the next chunk is seeded with the last `overlap_chars`
       characters of the finished chunk, keeping context that straddles the
       boundary retrievable from both sides.

    3. No small fragments.
       A sentence longer than `max_chars` arriving on an empty buffer is
       emitted alone. A buffer still shorter than `min_chars` absorbs the
       next sentence even past `max_chars` instead of being flushed. A short
       final chunk is merged into the previous one.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    @property
    def max_chars(self) -> int:
        return self.config.max_chars

    @property
    def min_chars(self) -> int:
        return int(self.config.min_chars or 0)

    @property
    def overlap_chars(self) -> int:
        return int(self.config.overlap_chars or 0)

    def split(self, text: str) -> list[str]:
        """Split normalized plain text into ordered chunk strings."""

        sentences = [
            sentence
            for paragraph in split_paragraphs(text)
            for sentence in split_sentences(paragraph)
        ]

        chunks: list[str] = []
        state = _ChunkState()

        for sentence in sentences:
            if state.length + state.cost(sentence) <= self.max_chars:
                state.add(sentence)
                continue

            if not state.parts:
                chunks.append(sentence)
                continue

            if state.length < self.min_chars:
                state.add(sentence)
                continue

            chunks.append(self._finalize(state))
            state = self._seeded_state(chunks[-1])
            state.add(sentence)

        if state.parts:
            chunks.append(self._finalize(state))

        if len(chunks) >= 2 and len(chunks[-1]) < self.min_chars:
            last = chunks.pop()
            chunks[-1] = f"{chunks[-1]} {last}".strip()

        return [chunk for chunk in chunks if chunk]

    def _seeded_state(self, previous: str) -> _ChunkState:
        state = _ChunkState()
        if self.overlap_chars > 0:
            tail = previous[-self.overlap_chars :]
            if tail.strip():
                state.add(tail)
        return state

    @staticmethod
    def _finalize(state: _ChunkState) -> str:
        return " ".join(state.parts).strip()


def split_into_chunks(
    text: str,
    max_chars: int = 700,
    *,
    min_chars: int | None = None,
    overlap_chars: int | None = None,
) -> list[str]:
    config = ChunkingConfig(
        max_chars=max_chars, min_chars=min_chars, overlap_chars=overlap_chars
    )
    return SentencePackingChunker(config).split(text)
