"""Main-content extraction and content quality classification."""

from __future__ import annotations

import copy
import logging
from typing import Dict, Tuple

from bs4 import BeautifulSoup, Tag  # type: ignore

from .errors import ExtractionFailure
from .nodes import ensure_soup
from .text import count_words, normalize_whitespace
from .types import ContentQuality, PageContent

logger = logging.getLogger(__name__)

# Candidate containers for the main content, in priority order.
CONTENT_SELECTORS: Tuple[str, ...] = (
    "main",
    '[role="main"]',
    "article",
    ".content",
    ".post-content",
    ".page-content",
    ".entry-content",
    ".main-content",
    ".article-content",
    ".post-body",
    ".description",
    ".summary",
)

BOILERPLATE_SELECTORS: Tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    ".nav",
    ".menu",
    ".navigation",
    ".sidebar",
    ".widget",
    ".ads",
    ".social",
    ".breadcrumb",
    "button",
    ".button",
    ".btn",
    ".toolbar",
    ".meta",
    ".tags",
    ".share",
    ".related-posts",
)

# Extra chrome stripped only when the whole body is analysed.
BODY_FALLBACK_SELECTORS: Tuple[str, ...] = (
    ".header",
    ".footer",
    ".sidebar",
    ".aside",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
    ".skip-link",
)


def classify_quality(word_count: int, heading_count: int, paragraph_count: int, config: Dict[str, float]) -> ContentQuality:
    """Return the quality band for the word count, adjusted by document structure."""

    if word_count < config.get("thin_content_threshold", 300):
        quality = ContentQuality.THIN
    elif word_count < config.get("medium_content_threshold", 800):
        quality = ContentQuality.MEDIUM
    else:
        quality = ContentQuality.HIGH

    if quality is ContentQuality.MEDIUM and heading_count >= 3 and paragraph_count >= 4:
        quality = ContentQuality.HIGH
    if quality is ContentQuality.HIGH and heading_count < 2:
        quality = ContentQuality.MEDIUM
    return quality


def analyze_element(element: Tag, config: Dict[str, float], body_fallback: bool = False) -> PageContent:
    """Strip boilerplate from a copy of ``element`` and measure what remains."""

    clone = copy.copy(element)
    selectors = list(BOILERPLATE_SELECTORS)
    if body_fallback:
        selectors.extend(BODY_FALLBACK_SELECTORS)
    for selector in selectors:
        for node in clone.select(selector):
            node.extract()

    headings = len(clone.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]))
    paragraphs = len(clone.find_all("p"))
    lists = len(clone.find_all(["ul", "ol"]))
    clean_text = normalize_whitespace(clone.get_text(" "))
    words = count_words(clean_text)

    return PageContent(
        word_count=words,
        heading_count=headings,
        paragraph_count=paragraphs,
        list_count=lists,
        quality=classify_quality(words, headings, paragraphs, config),
        clean_text=clean_text,
    )


def select_main_content(soup: BeautifulSoup | Tag, config: Dict[str, float]) -> PageContent:
    """Return the best main-content candidate or raise ``ExtractionFailure``."""

    best: PageContent | None = None
    for selector in CONTENT_SELECTORS:
        for element in soup.select(selector):
            analysis = analyze_element(element, config)
            if best is None or analysis.word_count > best.word_count:
                best = analysis

    minimum = int(config.get("min_main_content_words", 50))
    if best is None:
        raise ExtractionFailure("No main content container found")
    if best.word_count < minimum:
        raise ExtractionFailure(f"Main content too short: {best.word_count} words")
    return best


def extract_content(document: str | BeautifulSoup | Tag, config: Dict[str, float]) -> PageContent:
    """Extract main-content metrics, falling back to a filtered body analysis."""

    soup = ensure_soup(document)
    try:
        return select_main_content(soup, config)
    except ExtractionFailure as exc:
        logger.debug("Falling back to body extraction: %s", exc)

    body = soup.find("body")
    return analyze_element(body or soup, config, body_fallback=True)
