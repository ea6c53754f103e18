"""Page categorisation tests."""

from __future__ import annotations

import pytest

from linkgap.engine.categories import categorize_page, url_depth
from linkgap.engine.types import PageCategory


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com", PageCategory.HOMEPAGE),
        ("https://example.com/", PageCategory.HOMEPAGE),
        ("https://example.com/?ref=newsletter", PageCategory.HOMEPAGE),
        ("https://example.com/trade/btc-inr", PageCategory.TRADING_PAIR),
        ("https://example.com/trade/", PageCategory.TRADING_GENERAL),
        ("https://example.com/bitcoin/", PageCategory.CRYPTO_SPECIFIC),
        ("https://example.com/price/eth", PageCategory.MARKET_DATA),
        ("https://example.com/learn/what-is-bitcoin", PageCategory.LEARN_HUB),
        ("https://example.com/blog/wallet-safety", PageCategory.BLOG_ARTICLE),
        ("https://example.com/fees/", PageCategory.FEES_PRICING),
        ("https://example.com/misc/page", PageCategory.OTHER),
    ],
)
def test_categorize_by_url(url, expected):
    assert categorize_page(url) is expected


def test_first_matching_pattern_wins():
    # /trade/ is checked before /blog/
    assert categorize_page("https://example.com/trade/blog/") is PageCategory.TRADING_GENERAL


def test_title_can_decide_category():
    assert categorize_page("https://example.com/p/123", "Archive /support/ index") is PageCategory.SUPPORT_HELP


def test_category_match_is_case_insensitive():
    assert categorize_page("https://example.com/Blog/Post") is PageCategory.BLOG_ARTICLE


@pytest.mark.parametrize(
    ("url", "depth"),
    [
        ("https://example.com", 0),
        ("https://example.com/", 1),
        ("https://example.com/blog/post", 2),
        ("https://example.com/a/b/c", 3),
        ("", 0),
    ],
)
def test_url_depth(url, depth):
    assert url_depth(url) == depth
