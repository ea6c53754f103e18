"""Semantic layer tests with fixed embeddings."""

from __future__ import annotations

import pytest

from linkgap.engine.embeddings import EmbeddingProvider
from linkgap.engine.errors import InsufficientContent
from linkgap.engine.semantic import (
    analyze_semantics,
    detect_topics,
    embed_candidates,
    ensure_centroid,
    find_content_gaps,
    semantic_grade,
    semantic_score,
    topic_coverage,
)
from linkgap.engine.types import CandidatePage, PageCategory, Relationship, ThemeConsistency

from .conftest import StaticClient, make_content, words

VECTORS = {
    "page": [1.0, 0.0, 0.0],
    "b": [0.99, 0.1, 0.0],
    "c": [0.9, 0.43, 0.0],
    "d": [0.0, 0.0, 1.0],
}

PAGE_URL = "https://example.com/blog/custody"


def candidates():
    return [
        CandidatePage(url="https://example.com/b", title="Bitcoin basics | Example", text=words(150, first="b")),
        CandidatePage(url="https://example.com/c", title="Cold storage | Example", text=words(150, first="c")),
        CandidatePage(url="https://example.com/d", title="Careers | Example", text=words(150, first="d")),
    ]


def provider_for(session, config, client):
    return EmbeddingProvider(session, config, client, sleep=lambda _: None)


def test_analyze_semantics(session, engine_config):
    client = StaticClient(VECTORS)
    provider = provider_for(session, engine_config, client)
    content = make_content(400, text=words(400, first="page"))

    analysis = analyze_semantics(
        PAGE_URL, content, PageCategory.BLOG_ARTICLE, candidates(), session, provider, engine_config
    )

    assert analysis.embedding.method == "ollama"
    assert [page.url for page in analysis.similar_pages] == ["https://example.com/b", "https://example.com/c"]
    assert analysis.similar_pages[0].relationship is Relationship.DUPLICATE
    assert analysis.theme.level == "HIGH"
    assert analysis.theme.score == pytest.approx(0.9311, abs=1e-4)
    assert analysis.cluster.size == 3
    assert analysis.cluster.related_pages == ["https://example.com/b", "https://example.com/c"]
    assert analysis.cluster.cluster.authority_page == "https://example.com/b"
    assert [link.target_url for link in analysis.cross_links] == ["https://example.com/b", "https://example.com/c"]
    assert analysis.cross_links[0].anchor_text == "Bitcoin basics"
    assert [(gap.topic, gap.priority) for gap in analysis.content_gaps] == [("education", "MEDIUM")]
    assert analysis.score == 71
    assert analysis.grade == "B"
    assert analysis.insights == [
        "Possible duplicate content: https://example.com/b (0.99)",
        "Found 2 semantically similar pages for cross-linking",
        "2 cross-link opportunities identified within the cluster",
        f"Part of {analysis.cluster.topic} cluster with 3 pages",
        "Missing expected topics: education",
    ]
    assert len(client.calls) == 4
    assert session.clusters_ready
    assert session.centroid_ready


def test_clusters_are_built_once_per_session(session, engine_config):
    client = StaticClient(VECTORS)
    provider = provider_for(session, engine_config, client)
    content = make_content(400, text=words(400, first="page"))

    analyze_semantics(PAGE_URL, content, PageCategory.BLOG_ARTICLE, candidates(), session, provider, engine_config)
    clusters = session.clusters
    analyze_semantics(PAGE_URL, content, PageCategory.BLOG_ARTICLE, candidates(), session, provider, engine_config)

    assert session.clusters is clusters
    assert len(client.calls) == 4


def test_clusters_follow_the_page_set(session, engine_config):
    client = StaticClient({**VECTORS, "e": [0.0, 0.1, 0.99]})
    provider = provider_for(session, engine_config, client)

    analyze_semantics(
        PAGE_URL,
        make_content(400, text=words(400, first="page")),
        PageCategory.BLOG_ARTICLE,
        candidates(),
        session,
        provider,
        engine_config,
    )
    first_clusters = session.clusters
    staking = [CandidatePage(url="https://example.com/e", title="Staking rewards | Example", text=words(150, first="e"))]
    analysis = analyze_semantics(
        "https://example.com/blog/staking",
        make_content(400, text=words(400, first="d")),
        PageCategory.BLOG_ARTICLE,
        staking,
        session,
        provider,
        engine_config,
    )

    assert session.clusters is not first_clusters
    assert analysis.cluster.size == 2
    assert analysis.cluster.related_pages == ["https://example.com/e"]
    assert [link.target_url for link in analysis.cross_links] == ["https://example.com/e"]


def test_thin_page_is_not_analysed(session, engine_config):
    client = StaticClient(VECTORS)
    provider = provider_for(session, engine_config, client)
    content = make_content(99, text=words(99, first="page"))

    with pytest.raises(InsufficientContent) as excinfo:
        analyze_semantics(PAGE_URL, content, PageCategory.BLOG_ARTICLE, candidates(), session, provider, engine_config)

    assert (excinfo.value.words, excinfo.value.minimum) == (99, 100)
    assert client.calls == []


def test_single_page_has_no_centroid(session, engine_config):
    provider = provider_for(session, engine_config, StaticClient(VECTORS))
    content = make_content(1000, text=words(1000, first="page"))

    analysis = analyze_semantics(PAGE_URL, content, PageCategory.OTHER, [], session, provider, engine_config)

    assert analysis.theme.level == "N/A"
    assert analysis.similar_pages == []
    assert analysis.cluster.size == 0
    assert analysis.content_gaps == []
    # length 25 + half alignment 12.5 + full coverage 25 + no similar page 0
    assert analysis.score == 63


def test_embed_candidates_restores_serialised_vectors(session, engine_config):
    client = StaticClient(VECTORS)
    provider = provider_for(session, engine_config, client)
    pages = candidates()
    pages[0] = CandidatePage(url=pages[0].url, title=pages[0].title, text=pages[0].text, embedding="0.5,0.5,0")

    members = embed_candidates(pages, provider, exclude_url="https://example.com/d")

    assert [member.url for member in members] == ["https://example.com/b", "https://example.com/c"]
    assert members[0].embedding == [0.5, 0.5, 0.0]
    assert members[1].embedding == VECTORS["c"]
    assert len(client.calls) == 1


def test_topic_detection_and_gaps(engine_config):
    assert detect_topics("Secure your wallet, then trade.", engine_config) == ["trading", "security"]
    assert [gap.topic for gap in find_content_gaps("", PageCategory.HOMEPAGE, engine_config)] == [
        "trading",
        "security",
        "fees",
        "support",
        "education",
    ]
    assert topic_coverage("Learn how fees work", PageCategory.FEES_PRICING, engine_config) == 0.5
    assert topic_coverage("", PageCategory.OTHER, engine_config) == 1.0


@pytest.mark.parametrize(("score", "grade"), [(90, "A+"), (89.9, "A"), (80, "A"), (70, "B"), (60, "C"), (59.9, "D")])
def test_semantic_grade(score, grade):
    assert semantic_grade(score) == grade


def test_semantic_score_factors():
    assert semantic_score(1000, ThemeConsistency(1.0, "HIGH"), 1.0, 1.0) == pytest.approx(100)
    assert semantic_score(2000, ThemeConsistency(None, "N/A"), 1.0, 1.0) == pytest.approx(87.5)
    assert semantic_score(500, ThemeConsistency(-0.3, "LOW"), 0.0, -0.5) == pytest.approx(12.5)


def test_ensure_centroid_requires_enough_pages(session, engine_config):
    ensure_centroid(session, [[1.0, 0.0]], engine_config)

    assert session.centroid_ready
    assert session.centroid is None

    ensure_centroid(session, [[1.0, 0.0], [0.0, 1.0]], engine_config)
    assert session.centroid is None
