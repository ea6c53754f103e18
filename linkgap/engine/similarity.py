"""Vector similarity, relationship classification and theme consistency."""

from __future__ import annotations

import math
import re
from typing import List, Optional, Sequence

from .config import EngineConfig
from .errors import DimensionMismatch
from .types import ClusterMember, Embedding, Relationship, SimilarPage, ThemeConsistency

_TITLE_SEPARATOR_RE = re.compile(r"\s+[|\-–:]\s+")
MAX_ANCHOR_LENGTH = 60


def cosine_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Cosine similarity between two dense vectors of equal length.

    Zero vectors score 0.0. Both norms are accumulated in the same pass and
    combined under a single square root so that a vector compared with itself
    scores exactly 1.0.
    """

    if len(vector_a) != len(vector_b):
        raise DimensionMismatch(len(vector_a), len(vector_b))

    dot = norm_a = norm_b = 0.0
    for a, b in zip(vector_a, vector_b):
        dot += a * b
        norm_a += a * a
        norm_b += b * b
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return max(-1.0, min(1.0, dot / math.sqrt(norm_a * norm_b)))


def classify_relationship(similarity: float, config: EngineConfig) -> Relationship:
    if similarity > config.semantic("high_similarity_threshold", 0.95):
        return Relationship.DUPLICATE
    if similarity > config.semantic("similarity_threshold", 0.85):
        return Relationship.HIGHLY_RELATED
    if similarity > config.semantic("related_threshold", 0.75):
        return Relationship.RELATED
    return Relationship.LOOSELY_RELATED


def link_potential(similarity: float) -> str:
    if similarity > 0.8:
        return "HIGH"
    if similarity > 0.6:
        return "MEDIUM"
    return "LOW"


def consistency_level(score: float) -> str:
    if score > 0.8:
        return "HIGH"
    if score > 0.6:
        return "MEDIUM"
    return "LOW"


def suggest_anchor_text(title: str, text: str = "") -> str:
    """Anchor text for a link to a page: its title without the site suffix.

    Pages without a title fall back to the opening words of their content.
    """

    head = _TITLE_SEPARATOR_RE.split((title or "").strip())[0].strip()
    if not head:
        words = (text or "").split()[:3]
        return f"{' '.join(words)}..." if words else ""
    if len(head) > MAX_ANCHOR_LENGTH:
        head = head[:MAX_ANCHOR_LENGTH].rsplit(" ", 1)[0]
    return head


def find_similar_pages(
    url: str,
    embedding: Embedding,
    candidates: Sequence[ClusterMember],
    config: EngineConfig,
) -> List[SimilarPage]:
    """Candidates at or above the similarity threshold, most similar first."""

    threshold = config.semantic("similarity_threshold", 0.85)
    similar: List[SimilarPage] = []
    for candidate in candidates:
        if candidate.url == url:
            continue
        similarity = cosine_similarity(embedding, candidate.embedding)
        if similarity < threshold:
            continue
        similar.append(
            SimilarPage(
                url=candidate.url,
                title=candidate.title,
                similarity=similarity,
                relationship=classify_relationship(similarity, config),
                link_potential=link_potential(similarity),
                suggested_anchor=suggest_anchor_text(candidate.title, candidate.text),
            )
        )
    similar.sort(key=lambda page: page.similarity, reverse=True)
    return similar[: int(config.semantic("max_similar_pages", 10))]


def compute_centroid(vectors: Sequence[Embedding], sample_size: int = 50) -> Optional[Embedding]:
    """Mean of the first ``sample_size`` vectors, or ``None`` when there are none."""

    sample = list(vectors[:sample_size])
    if not sample:
        return None
    dimensions = len(sample[0])
    totals = [0.0] * dimensions
    for vector in sample:
        if len(vector) != dimensions:
            raise DimensionMismatch(dimensions, len(vector))
        for index, value in enumerate(vector):
            totals[index] += value
    return [total / len(sample) for total in totals]


def theme_consistency(embedding: Embedding, centroid: Optional[Embedding]) -> ThemeConsistency:
    if centroid is None:
        return ThemeConsistency(score=None, level="N/A")
    score = cosine_similarity(embedding, centroid)
    return ThemeConsistency(score=score, level=consistency_level(score))
