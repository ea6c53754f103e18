"""Similarity, relationship and theme tests."""

from __future__ import annotations

import pytest

from linkgap.engine.config import load_config
from linkgap.engine.errors import DimensionMismatch
from linkgap.engine.similarity import (
    classify_relationship,
    compute_centroid,
    consistency_level,
    cosine_similarity,
    find_similar_pages,
    link_potential,
    suggest_anchor_text,
    theme_consistency,
)
from linkgap.engine.types import ClusterMember, Relationship

PAGE = [1.0, 0.0, 0.0]


def members():
    return [
        ClusterMember(url="https://example.com/", title="Home", embedding=[1.0, 0.0, 0.0]),
        ClusterMember(url="https://example.com/d", title="Unrelated", embedding=[0.0, 0.0, 1.0]),
        ClusterMember(url="https://example.com/c", title="Close page", embedding=[0.9, 0.43, 0.0]),
        ClusterMember(url="https://example.com/b", title="Bitcoin basics | Example", embedding=[0.99, 0.1, 0.0]),
    ]


def test_cosine_similarity_basics():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == -1.0
    assert cosine_similarity([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_cosine_similarity_rejects_mixed_dimensions():
    with pytest.raises(DimensionMismatch) as excinfo:
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])
    assert (excinfo.value.left, excinfo.value.right) == (2, 3)


@pytest.mark.parametrize(
    ("similarity", "relationship"),
    [
        (0.99, Relationship.DUPLICATE),
        (0.95, Relationship.HIGHLY_RELATED),
        (0.86, Relationship.HIGHLY_RELATED),
        (0.85, Relationship.RELATED),
        (0.76, Relationship.RELATED),
        (0.75, Relationship.LOOSELY_RELATED),
    ],
)
def test_classify_relationship(engine_config, similarity, relationship):
    assert classify_relationship(similarity, engine_config) is relationship


@pytest.mark.parametrize(("value", "level"), [(0.81, "HIGH"), (0.8, "MEDIUM"), (0.61, "MEDIUM"), (0.6, "LOW"), (-0.2, "LOW")])
def test_levels(value, level):
    assert link_potential(value) == level
    assert consistency_level(value) == level


def test_suggest_anchor_text():
    assert suggest_anchor_text("How to Buy Bitcoin | Example Exchange") == "How to Buy Bitcoin"
    assert suggest_anchor_text("Fees - Example") == "Fees"
    assert suggest_anchor_text("Staking – a primer") == "Staking"
    assert suggest_anchor_text("BTC-INR trading desk") == "BTC-INR trading desk"
    assert suggest_anchor_text("", "Bitcoin custody explained in depth") == "Bitcoin custody explained..."
    assert suggest_anchor_text("", "") == ""


def test_long_anchor_breaks_on_a_word():
    anchor = suggest_anchor_text("alpha " * 15)

    assert len(anchor) <= 60
    assert anchor == " ".join(["alpha"] * 10)


def test_find_similar_pages(engine_config):
    similar = find_similar_pages("https://example.com/", PAGE, members(), engine_config)

    assert [page.url for page in similar] == ["https://example.com/b", "https://example.com/c"]
    assert similar[0].relationship is Relationship.DUPLICATE
    assert similar[0].link_potential == "HIGH"
    assert similar[0].suggested_anchor == "Bitcoin basics"
    assert similar[1].relationship is Relationship.HIGHLY_RELATED
    assert similar[1].similarity == pytest.approx(0.9023, abs=1e-4)


def test_find_similar_pages_is_capped():
    config = load_config(None, {"semantic": {"max_similar_pages": 1}})

    similar = find_similar_pages("https://example.com/", PAGE, members(), config)

    assert [page.url for page in similar] == ["https://example.com/b"]


def test_compute_centroid():
    assert compute_centroid([]) is None
    assert compute_centroid([[1.0, 0.0], [0.0, 1.0]]) == [0.5, 0.5]
    assert compute_centroid([[1.0, 0.0], [0.0, 1.0]], sample_size=1) == [1.0, 0.0]
    with pytest.raises(DimensionMismatch):
        compute_centroid([[1.0, 0.0], [1.0]])


def test_theme_consistency():
    assert theme_consistency(PAGE, None).level == "N/A"
    assert theme_consistency(PAGE, None).score is None

    theme = theme_consistency(PAGE, [0.5, 0.5, 0.0])
    assert theme.score == pytest.approx(0.7071, abs=1e-4)
    assert theme.level == "MEDIUM"
