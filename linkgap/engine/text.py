"""Shared text utilities for the link gap engine."""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, List

_TOKEN_RE = re.compile(r"[\w']+")
_WHITESPACE_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"^\d+$")
_PUNCTUATION_RE = re.compile(r"^[^\w\s]+$")

_STOPWORDS = {
    "the",
    "and",
    "for",
    "with",
    "that",
    "this",
    "from",
    "are",
    "was",
    "were",
    "you",
    "your",
    "our",
    "has",
    "have",
    "not",
    "but",
    "all",
    "can",
    "will",
    "its",
    "into",
    "about",
    "more",
    "how",
    "what",
    "when",
    "which",
    "their",
    "they",
    "them",
    "also",
}


def tokenize(text: str) -> List[str]:
    """Return lower-cased word tokens from the provided text."""

    return [token.lower() for token in _TOKEN_RE.findall(text)]


def term_frequencies(tokens: Iterable[str]) -> Counter[str]:
    """Return term frequencies for the tokens."""

    return Counter(tokens)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""

    return _WHITESPACE_RE.sub(" ", text or "").strip()


def is_meaningful_word(word: str) -> bool:
    """Words longer than two characters that are not pure digits or punctuation."""

    return len(word) > 2 and not _DIGITS_RE.match(word) and not _PUNCTUATION_RE.match(word)


def meaningful_words(text: str) -> List[str]:
    """Split on whitespace and keep only meaningful words."""

    return [word for word in (text or "").split() if is_meaningful_word(word)]


def count_words(text: str) -> int:
    return len(meaningful_words(text))


def top_terms(texts: Iterable[str], limit: int = 3) -> List[str]:
    """Return the most frequent non-stopword terms across the texts."""

    counter: Counter[str] = Counter()
    for text in texts:
        counter.update(
            token for token in tokenize(text) if len(token) > 3 and token not in _STOPWORDS and not token.isdigit()
        )
    # Ties resolve alphabetically so topics are stable across runs.
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [term for term, _ in ranked[:limit]]
