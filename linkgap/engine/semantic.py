"""Semantic layer: embeddings, similar pages, clusters, gaps and the semantic score."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from .clustering import assign_cluster, build_clusters, propose_cross_links
from .config import EngineConfig
from .embeddings import EmbeddingProvider
from .errors import InsufficientContent
from .session import AnalysisSession
from .similarity import compute_centroid, cosine_similarity, find_similar_pages, theme_consistency
from .text import tokenize
from .types import (
    CandidatePage,
    ClusterAssignment,
    ClusterMember,
    ContentGap,
    CrossLink,
    PageCategory,
    PageContent,
    Relationship,
    SemanticAnalysis,
    SimilarPage,
    ThemeConsistency,
)

logger = logging.getLogger(__name__)

_PRIORITY_ORDER = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}
MAX_INSIGHTS = 5


def embed_candidates(
    candidates: Sequence[CandidatePage],
    provider: EmbeddingProvider,
    exclude_url: str = "",
) -> List[ClusterMember]:
    """Embed the other pages, reusing any serialised embedding they carry."""

    pages = [candidate for candidate in candidates if candidate.url != exclude_url]
    fresh = [candidate for candidate in pages if not candidate.embedding]
    fresh_results = iter(provider.embed_many([candidate.text for candidate in fresh]))

    members: List[ClusterMember] = []
    for candidate in pages:
        if candidate.embedding:
            result = provider.restore(candidate.embedding, candidate.text)
        else:
            result = next(fresh_results)
        members.append(ClusterMember(url=candidate.url, title=candidate.title, embedding=result.vector, text=candidate.text))
    return members


def detect_topics(text: str, config: EngineConfig) -> List[str]:
    words = set(tokenize(text))
    topics: Dict[str, List[str]] = config.get("topic_keywords", {})
    return [topic for topic, keywords in topics.items() if any(keyword in words for keyword in keywords)]


def topic_priority(topic: str, config: EngineConfig) -> str:
    for priority, topics in config.get("gap_priorities", {}).items():
        if topic in topics:
            return priority
    return "MEDIUM"


def find_content_gaps(text: str, category: PageCategory, config: EngineConfig) -> List[ContentGap]:
    """Expected topics for the category that the page never mentions, most urgent first."""

    covered = detect_topics(text, config)
    expected = config.get("expected_topics", {}).get(category.value, [])
    gaps = [ContentGap(topic, topic_priority(topic, config)) for topic in expected if topic not in covered]
    return sorted(gaps, key=lambda gap: _PRIORITY_ORDER.get(gap.priority, 1))


def topic_coverage(text: str, category: PageCategory, config: EngineConfig) -> float:
    expected = config.get("expected_topics", {}).get(category.value, [])
    if not expected:
        return 1.0
    covered = detect_topics(text, config)
    return sum(1 for topic in expected if topic in covered) / len(expected)


def semantic_grade(score: float) -> str:
    if score >= 90:
        return "A+"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    return "D"


def semantic_score(word_count: int, theme: ThemeConsistency, coverage: float, best_similarity: float) -> float:
    """Four factors worth 25 points each.

    Content length saturates at 1000 words. A page without a site centroid
    gets half credit for theme alignment.
    """

    alignment = 0.5 if theme.score is None else max(theme.score, 0.0)
    factors = (
        min(word_count / 1000, 1.0),
        alignment,
        coverage,
        max(best_similarity, 0.0),
    )
    return sum(factor * 25 for factor in factors)


def build_insights(
    similar: Sequence[SimilarPage],
    theme: ThemeConsistency,
    cross_links: Sequence[CrossLink],
    cluster: ClusterAssignment,
    gaps: Sequence[ContentGap],
) -> List[str]:
    insights: List[str] = []
    duplicates = [page for page in similar if page.relationship is Relationship.DUPLICATE]
    if duplicates:
        insights.append(f"Possible duplicate content: {duplicates[0].url} ({duplicates[0].similarity:.2f})")
    if similar:
        insights.append(f"Found {len(similar)} semantically similar pages for cross-linking")
    if theme.level == "LOW":
        insights.append(f"Content theme alignment needs improvement ({theme.score:.4f})")
    if cross_links:
        insights.append(f"{len(cross_links)} cross-link opportunities identified within the cluster")
    if cluster.size > 1:
        insights.append(f"Part of {cluster.topic} cluster with {cluster.size} pages")
    if gaps:
        insights.append(f"Missing expected topics: {', '.join(gap.topic for gap in gaps)}")
    return insights[:MAX_INSIGHTS]


def ensure_centroid(session: AnalysisSession, vectors: List[List[float]], config: EngineConfig) -> None:
    if session.centroid_ready:
        return
    if len(vectors) < int(config.semantic("min_centroid_pages", 2)):
        session.set_centroid(None)
        return
    session.set_centroid(compute_centroid(vectors, int(config.semantic("centroid_sample_size", 50))))


def analyze_semantics(
    url: str,
    content: PageContent,
    category: PageCategory,
    candidates: Sequence[CandidatePage],
    session: AnalysisSession,
    provider: EmbeddingProvider,
    config: EngineConfig,
    title: str = "",
) -> SemanticAnalysis:
    """Run the semantic layer for one page against the other pages of the run."""

    minimum = int(config.semantic("min_content_words", 100))
    if content.word_count < minimum:
        raise InsufficientContent(content.word_count, minimum)

    page_embedding = provider.embed(content.clean_text)
    vector = page_embedding.vector
    members = embed_candidates(candidates, provider, exclude_url=url)

    similar = find_similar_pages(url, vector, members, config)

    ensure_centroid(session, [member.embedding for member in members] + [vector], config)
    theme = theme_consistency(vector, session.centroid)

    page_set = frozenset([url, *(member.url for member in members)])
    if not session.clusters_ready or session.cluster_key != page_set:
        session.set_clusters(build_clusters(members, config), page_set)
    assignment = assign_cluster(url, vector, session.clusters, config)
    source = ClusterMember(url=url, title=title, embedding=vector, text=content.clean_text)
    cross_links = propose_cross_links(source, assignment.cluster, config)

    gaps = find_content_gaps(content.clean_text, category, config)
    best_similarity = max((cosine_similarity(vector, member.embedding) for member in members), default=0.0)
    raw_score = semantic_score(
        content.word_count,
        theme,
        topic_coverage(content.clean_text, category, config),
        best_similarity,
    )

    insights = build_insights(similar, theme, cross_links, assignment, gaps)
    logger.debug("Semantic analysis for %s scored %.1f (%s)", url, raw_score, page_embedding.method)

    return SemanticAnalysis(
        embedding=page_embedding,
        similar_pages=similar,
        theme=theme,
        cluster=assignment,
        cross_links=cross_links,
        content_gaps=gaps,
        score=math.floor(raw_score + 0.5),
        grade=semantic_grade(raw_score),
        insights=insights,
    )
