"""Word tokenization, naive singularization and term-frequency indexing."""

from __future__ import annotations

import re
from collections import Counter

# Anything that is not a Unicode letter, digit or whitespace. `\w` also
# admits the underscore, so it is excluded explicitly.
_NON_WORD = re.compile(r"[^\w\s]|_", flags=re.UNICODE)
_POSSESSIVE = re.compile(r"(?:'|’)s$", flags=re.IGNORECASE)

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "in", "to", "for", "on", "at",
        "is", "are", "was", "were", "be", "with", "by", "from", "that",
        "this", "it", "as", "we", "you", "your", "our", "their", "they", "i",
    }
)


def tokenize(text: str) -> list[str]:
    """Lowercase `text`, blank out punctuation and split on whitespace."""
    return _NON_WORD.sub(" ", text.lower()).split()


def normalize_token(token: str) -> str:
    """Strip a possessive and fold simple plurals (`hours` -> `hour`).

    Not a stemmer: `ies` becomes `y` and a trailing `s` is dropped from
    tokens longer than three characters.
    """

    token = _POSSESSIVE.sub("", token)
    if token.endswith("ies"):
        return token[:-3] + "y"
    if token.endswith("s") and len(token) > 3:
        return token[:-1]
    return token


def analyze(text: str) -> list[str]:
    return [normalize_token(token) for token in tokenize(text)]


def term_freq(text: str) -> dict[str, int]:
    """Count normalized, non-stop-word terms in `text`.

    Pure digit runs of four or more characters (phone numbers, years, order
    ids) are dropped as noise.
    """

    counts: Counter[str] = Counter()
    for raw in tokenize(text):
        # Checked before normalizing too, so "this" is not kept as "thi".
        if raw in STOP_WORDS:
            continue
        token = normalize_token(raw)
        if not token or token in STOP_WORDS:
            continue
        if token.isdigit() and len(token) >= 4:
            continue
        counts[token] += 1
    return dict(counts)
