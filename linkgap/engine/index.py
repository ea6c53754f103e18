"""Coordinator for the link gap analysis pipeline."""

from __future__ import annotations

import html
import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag  # type: ignore

from . import scoring as scoring_module
from .categories import categorize_page, url_depth
from .clustering import build_clusters
from .config import EngineConfig, load_config
from .embeddings import EmbeddingProvider
from .errors import ConfigurationError, DimensionMismatch, InsufficientContent
from .extraction import extract_content
from .links import collect_links
from .nodes import ensure_soup
from .report import Report, build_report, error_report
from .semantic import analyze_semantics, embed_candidates, ensure_centroid
from .session import AnalysisSession
from .types import CandidatePage, SemanticAnalysis

logger = logging.getLogger(__name__)


def prepare_candidates(candidates: Sequence[CandidatePage], config: EngineConfig) -> List[CandidatePage]:
    """Fill in the text of candidates that only carry HTML."""

    prepared: List[CandidatePage] = []
    for candidate in candidates:
        if not candidate.text and candidate.html:
            candidate = replace(candidate, text=extract_content(candidate.html, config).clean_text)
        prepared.append(candidate)
    return prepared


def analyze_page(
    document: str | BeautifulSoup | Tag,
    url: str,
    title: str = "",
    candidates: Optional[Sequence[CandidatePage]] = None,
    config: EngineConfig | None = None,
    session: AnalysisSession | None = None,
    provider: EmbeddingProvider | None = None,
) -> Report:
    """Return the report record for one page.

    Semantic analysis runs only when ``candidates`` is given (it may be
    empty). Thin pages and an unreachable embedding service degrade the
    report; mixed embedding sizes and unusable configuration produce an
    error record instead.
    """

    engine_config = config or load_config(None)
    active_session = session or (provider.session if provider else AnalysisSession())
    owns_session = session is None and provider is None

    try:
        engine_config.validate()
        active_provider = provider or EmbeddingProvider(active_session, engine_config)
        return _run_pipeline(document, url, title, candidates, engine_config, active_session, active_provider)
    except (DimensionMismatch, ConfigurationError) as exc:
        logger.error("Analysis of %s aborted: %s", url, exc)
        return error_report(url, exc)
    finally:
        if owns_session:
            active_session.clear()


def _run_pipeline(
    document: str | BeautifulSoup | Tag,
    url: str,
    title: str,
    candidates: Optional[Sequence[CandidatePage]],
    config: EngineConfig,
    session: AnalysisSession,
    provider: EmbeddingProvider,
) -> Report:
    soup = ensure_soup(document)
    content = extract_content(soup, config)
    link_set = collect_links(soup, url)
    category = categorize_page(url, title)
    depth = url_depth(url)

    assessment = scoring_module.score_opportunity(link_set, content, category, depth, config)
    balance = scoring_module.external_balance(link_set, config)
    actions = scoring_module.recommend_actions(link_set, content, category, assessment, balance, config)

    semantic: SemanticAnalysis | None = None
    skipped: InsufficientContent | None = None
    if candidates is not None:
        try:
            semantic = analyze_semantics(
                url,
                content,
                category,
                prepare_candidates(candidates, config),
                session,
                provider,
                config,
                title=title,
            )
        except InsufficientContent as exc:
            logger.info("Semantic analysis skipped for %s: %s", url, exc)
            skipped = exc

    return build_report(
        url,
        category,
        content,
        link_set,
        assessment,
        balance,
        actions,
        depth,
        config,
        semantic=semantic,
        skipped=skipped,
    )


def analyze_site(
    pages: Sequence[CandidatePage],
    config: EngineConfig | None = None,
    provider: EmbeddingProvider | None = None,
) -> List[Report]:
    """Analyse a small set of pages together, each compared with the others.

    Embeddings are requested up front in throttled batches, or restored from
    the serialised vectors the pages carry; the centroid and the clusters are
    computed once for the whole set.
    """

    engine_config = config or load_config(None)
    try:
        engine_config.validate()
    except ConfigurationError as exc:
        logger.error("Site analysis aborted: %s", exc)
        return [error_report(page.url, exc) for page in pages]

    with (provider.session if provider else AnalysisSession()) as session:
        active_provider = provider or EmbeddingProvider(session, engine_config)
        if session.service_available is None and not active_provider.client.is_available():
            logger.warning("Embedding service unreachable; using fallback embeddings for this run")
            session.service_available = False

        prepared = prepare_candidates(pages, engine_config)
        try:
            members = embed_candidates(prepared, active_provider)
            ensure_centroid(session, [member.embedding for member in members], engine_config)
            session.set_clusters(
                build_clusters(members, engine_config), frozenset(member.url for member in members)
            )
        except DimensionMismatch as exc:
            logger.error("Site analysis aborted: %s", exc)
            return [error_report(page.url, exc) for page in pages]

        reports: List[Report] = []
        for page in prepared:
            others = [other for other in prepared if other.url != page.url]
            document = page.html if page.html else f"<body><p>{html.escape(page.text)}</p></body>"
            reports.append(
                analyze_page(
                    document,
                    page.url,
                    page.title,
                    candidates=others,
                    config=engine_config,
                    session=session,
                    provider=active_provider,
                )
            )
        return reports
