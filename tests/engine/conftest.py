"""Shared fixtures for engine tests."""

from __future__ import annotations

import io
import json
import urllib.error
from typing import Dict, Iterable, List, Sequence

import pytest

from linkgap.engine.config import load_config
from linkgap.engine.embeddings import EmbeddingProvider, OllamaClient
from linkgap.engine.extraction import classify_quality
from linkgap.engine.session import AnalysisSession
from linkgap.engine.types import ContextClass, Link, LinkSet, PageContent

FILLER = (
    "bitcoin markets move quickly and careful investors compare wallets exchanges custody "
    "options before committing capital into volatile digital assets"
).split()


@pytest.fixture()
def engine_config():
    """Provide a mutable copy of the default engine configuration."""

    return load_config(None)


@pytest.fixture()
def session():
    with AnalysisSession() as active:
        yield active


def words(count: int, first: str | None = None) -> str:
    """Return ``count`` meaningful words, optionally starting with a marker word."""

    tokens = [FILLER[index % len(FILLER)] for index in range(count)]
    if first is not None and tokens:
        tokens[0] = first
    return " ".join(tokens)


def make_html(body: str, title: str = "Example page") -> str:
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


def make_content(word_count: int, headings: int = 2, paragraphs: int = 5, text: str = "", config=None) -> PageContent:
    thresholds = config or load_config(None)
    return PageContent(
        word_count=word_count,
        heading_count=headings,
        paragraph_count=paragraphs,
        list_count=0,
        quality=classify_quality(word_count, headings, paragraphs, thresholds),
        clean_text=text,
    )


def make_link_set(
    contextual: Iterable[str] = (),
    *,
    external: int = 0,
    navigation: int = 0,
    footer: int = 0,
) -> LinkSet:
    link_set = LinkSet()
    for href in contextual:
        link_set.add(Link(href=href, anchor_text=href, is_internal=True, context_class=ContextClass.CONTEXTUAL))
    for index in range(navigation):
        link_set.add(Link(href=f"/nav-{index}", anchor_text="nav", is_internal=True, context_class=ContextClass.NAVIGATION))
    for index in range(footer):
        link_set.add(Link(href=f"/footer-{index}", anchor_text="footer", is_internal=True, context_class=ContextClass.FOOTER))
    for index in range(external):
        link_set.add(Link(href=f"https://other.example/{index}", anchor_text="out", is_internal=False))
    return link_set


class FakeResponse(io.BytesIO):
    def __init__(self, payload: object, status: int = 200) -> None:
        super().__init__(json.dumps(payload).encode("utf-8"))
        self.status = status


class FakeOpener:
    """Stand-in for ``urllib.request.urlopen`` that records each request."""

    def __init__(self, responses: Sequence[object] | None = None, error: Exception | None = None) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.requests: List[object] = []

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        payload = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return FakeResponse(payload)


class StaticClient:
    """Embedding client returning fixed vectors keyed by the first word of the text."""

    def __init__(self, vectors: Dict[str, List[float]], available: bool = True) -> None:
        self.vectors = vectors
        self.available = available
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        marker = text.split()[0] if text.split() else ""
        return list(self.vectors[marker])

    def is_available(self) -> bool:
        return self.available


def down_provider(session: AnalysisSession, config) -> EmbeddingProvider:
    """Provider whose service never answers; retries do not sleep."""

    opener = FakeOpener(error=urllib.error.URLError("connection refused"))
    client = OllamaClient(config, opener=opener, sleep=lambda _: None)
    return EmbeddingProvider(session, config, client, sleep=lambda _: None)
