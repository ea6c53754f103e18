"""Hyperlink collection and contextual/template classification."""

from __future__ import annotations

import re
from typing import Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag  # type: ignore

from .nodes import NodeInfo, ancestor_chain, ensure_soup
from .types import ContextClass, Link, LinkSet

TEMPLATE_WALK_DEPTH = 5
CONTENT_WALK_DEPTH = 3

_INTERFACE_PATH_RE = re.compile(r"/trade/|/tradeview/|/market/|/price/", re.IGNORECASE)
_PAIR_PATH_RE = re.compile(r"/[A-Z]+-[A-Z]+", re.IGNORECASE)
_PAIR_TEXT_RE = re.compile(r"^[A-Z]{2,5}-[A-Z]{2,5}$")

_DATA_CLASS_HINTS = ("table", "list", "grid", "market", "trading", "pairs", "ticker", "price")
_DATA_TAGS = {"table", "tbody", "tr", "td"}
_NAV_CLASS_HINTS = ("nav", "menu", "breadcrumb", "header", "sidebar", "widget")
_NAV_ID_HINTS = ("nav", "menu", "header")
_TEMPLATE_CLASS_HINTS = ("template", "global", "sitewide")
_CONTENT_CLASS_HINTS = ("article-body", "post-content", "entry-content")


def is_internal(href: str, hostname: str) -> bool:
    """Root-relative, query-relative, or absolute on the page's own host."""

    if href.startswith("//"):
        return (urlparse("http:" + href).hostname or "") == hostname.lower()
    if href.startswith("/") or href.startswith("?"):
        return True
    if href.lower().startswith("http"):
        return (urlparse(href).hostname or "") == hostname.lower()
    return False


def _is_external(href: str) -> bool:
    return href.lower().startswith("http") or href.startswith("//")


def _matches_interface_pattern(node: NodeInfo) -> bool:
    href = node.attrs.get("href", "")
    if _INTERFACE_PATH_RE.search(href) and _PAIR_PATH_RE.search(href):
        return True
    return bool(_PAIR_TEXT_RE.match(node.text))


def _template_class(node: NodeInfo) -> ContextClass | None:
    tag, class_name, node_id = node.tag, node.class_name, node.id

    if tag in _DATA_TAGS or any(hint in class_name for hint in _DATA_CLASS_HINTS):
        return ContextClass.NAVIGATION
    if tag == "nav" or any(hint in class_name for hint in _NAV_CLASS_HINTS) or any(hint in node_id for hint in _NAV_ID_HINTS):
        return ContextClass.NAVIGATION
    if tag == "footer" or "footer" in class_name or "footer" in node_id:
        return ContextClass.FOOTER
    if any(hint in class_name for hint in _TEMPLATE_CLASS_HINTS) or node.role == "navigation":
        return ContextClass.NAVIGATION
    return None


def _is_content_node(node: NodeInfo) -> bool:
    tag, class_name = node.tag, node.class_name
    if tag == "p":
        return True
    if tag == "article" and "content" in class_name:
        return True
    if tag == "div" and "post" in class_name:
        return True
    return any(hint in class_name for hint in _CONTENT_CLASS_HINTS)


def classify(node: NodeInfo, ancestors: Sequence[NodeInfo]) -> ContextClass:
    """Classify an internal link from the link node and its ancestors (nearest first).

    The first walk looks for template containers across the link and up to
    four ancestors, stopping at ``body``. When nothing matched, a shorter walk
    looks for editorial content markers. Ambiguous links default to
    navigation since most links on a page belong to the chrome.
    """

    if _matches_interface_pattern(node):
        return ContextClass.NAVIGATION

    chain = [node, *ancestors]
    for element in chain[:TEMPLATE_WALK_DEPTH]:
        if element.tag == "body":
            break
        verdict = _template_class(element)
        if verdict is not None:
            return verdict

    for element in chain[:CONTENT_WALK_DEPTH]:
        if _is_content_node(element):
            return ContextClass.CONTEXTUAL

    return ContextClass.NAVIGATION


def build_link(anchor: Tag, hostname: str) -> Link | None:
    """Return a classified ``Link`` for the anchor, or ``None`` for ignorable hrefs."""

    href = (anchor.get("href") or "").strip()
    if not href or href == "#":
        return None

    rel = anchor.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    nofollow = "nofollow" in [value.lower() for value in rel]
    node = NodeInfo.from_tag(anchor)

    if is_internal(href, hostname):
        context_class = classify(node, ancestor_chain(anchor))
        return Link(href=href, anchor_text=node.text, is_internal=True, context_class=context_class, nofollow=nofollow)
    if _is_external(href):
        return Link(href=href, anchor_text=node.text, is_internal=False, nofollow=nofollow)
    return None


def collect_links(document: str | BeautifulSoup | Tag, page_url: str) -> LinkSet:
    """Walk every ``a[href]`` on the page and aggregate the classified links."""

    soup = ensure_soup(document)
    hostname = (urlparse(page_url).hostname or "").lower()
    link_set = LinkSet()
    for anchor in soup.find_all("a", href=True):
        link = build_link(anchor, hostname)
        if link is not None:
            link_set.add(link)
    return link_set
