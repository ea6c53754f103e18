"""Tree adapters: parse HTML and describe elements independently of the DOM library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from bs4 import BeautifulSoup, Tag  # type: ignore


@dataclass(frozen=True)
class NodeInfo:
    """Attributes of one element that the link classifier inspects."""

    tag: str
    class_name: str = ""
    id: str = ""
    role: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @classmethod
    def from_tag(cls, tag: Tag, with_text: bool = True) -> "NodeInfo":
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        attrs = {key: _attr_text(value) for key, value in tag.attrs.items()}
        return cls(
            tag=(tag.name or "").lower(),
            class_name=" ".join(classes).lower(),
            id=_attr_text(tag.get("id")).lower(),
            role=_attr_text(tag.get("role")).lower(),
            attrs=attrs,
            text=tag.get_text().strip() if with_text else "",
        )


def _attr_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


def parse_html(html: str) -> BeautifulSoup:
    """Parse markup with lxml when available, html.parser otherwise."""

    try:
        return BeautifulSoup(html or "", "lxml")
    except Exception:
        # Fallback to html.parser if lxml isn't installed
        return BeautifulSoup(html or "", "html.parser")


def ensure_soup(document: str | BeautifulSoup | Tag) -> BeautifulSoup | Tag:
    if isinstance(document, (BeautifulSoup, Tag)):
        return document
    return parse_html(document)


def ancestor_chain(tag: Tag) -> List[NodeInfo]:
    """Return the element's ancestors, nearest first, excluding the document root."""

    chain: List[NodeInfo] = []
    for parent in tag.parents:
        if isinstance(parent, BeautifulSoup) or not getattr(parent, "name", None):
            break
        chain.append(NodeInfo.from_tag(parent, with_text=False))
    return chain
