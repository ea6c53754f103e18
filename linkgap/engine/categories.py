"""Page categorisation by URL and title patterns."""

from __future__ import annotations

import re
from typing import List, Tuple

from .types import PageCategory

# Order is significant: the first matching pattern wins.
CATEGORY_PATTERNS: List[Tuple[PageCategory, re.Pattern[str]]] = [
    (PageCategory.HOMEPAGE, re.compile(r"^https?://[^/]+/?(\?.*)?$")),
    (PageCategory.TRADING_PAIR, re.compile(r"/(trade|trading)/[a-z]+-[a-z]+", re.IGNORECASE)),
    (PageCategory.TRADING_GENERAL, re.compile(r"/(trade|trading|exchange|buy|sell)/", re.IGNORECASE)),
    (PageCategory.CRYPTO_SPECIFIC, re.compile(r"/(crypto|coin|bitcoin|ethereum|btc|eth|ada|sol)/", re.IGNORECASE)),
    (PageCategory.MARKET_DATA, re.compile(r"/(market|price|chart|rates|ticker)/", re.IGNORECASE)),
    (PageCategory.PORTFOLIO, re.compile(r"/(portfolio|wallet|balance|holdings)/", re.IGNORECASE)),
    (PageCategory.LEARN_HUB, re.compile(r"/(learn|education|academy|guide|tutorial|how-to)/", re.IGNORECASE)),
    (PageCategory.BLOG_ARTICLE, re.compile(r"/(blog|news|article|post|insights)/", re.IGNORECASE)),
    (PageCategory.SECURITY_PAGE, re.compile(r"/(security|safety|2fa|kyc|verification)/", re.IGNORECASE)),
    (PageCategory.FEES_PRICING, re.compile(r"/(fees|pricing|charges|cost|commission)/", re.IGNORECASE)),
    (PageCategory.API_DEVELOPER, re.compile(r"/(api|developer|docs|documentation)/", re.IGNORECASE)),
    (PageCategory.SUPPORT_HELP, re.compile(r"/(support|help|faq|contact|tickets)/", re.IGNORECASE)),
    (PageCategory.LEGAL_COMPLIANCE, re.compile(r"/(legal|terms|privacy|policy|compliance)/", re.IGNORECASE)),
    (PageCategory.ABOUT_COMPANY, re.compile(r"/(about|company|team|careers)/", re.IGNORECASE)),
]


def categorize_page(url: str, title: str = "") -> PageCategory:
    """Return the first category whose pattern matches the URL or the title."""

    url_lower = (url or "").lower()
    title_lower = (title or "").lower()
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(url_lower) or pattern.search(title_lower):
            return category
    return PageCategory.OTHER


def url_depth(url: str) -> int:
    """Depth of the URL as the count of slashes past the scheme separator."""

    return max((url or "").count("/") - 2, 0)
