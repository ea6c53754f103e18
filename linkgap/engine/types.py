"""Typed data structures used by the link gap engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple

Embedding = List[float]


class ContentQuality(str, Enum):
    THIN = "thin"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _QUALITY_RANK[self]


_QUALITY_RANK = {ContentQuality.THIN: 0, ContentQuality.MEDIUM: 1, ContentQuality.HIGH: 2}


class ContextClass(str, Enum):
    CONTEXTUAL = "contextual"
    NAVIGATION = "navigation"
    FOOTER = "footer"


class Severity(str, Enum):
    NONE = "none"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BalanceVerdict(str, Enum):
    BALANCED = "BALANCED"
    HIGH_EXTERNAL_RATIO = "HIGH_EXTERNAL_RATIO"
    EXTERNAL_ONLY = "EXTERNAL_ONLY"


class Relationship(str, Enum):
    DUPLICATE = "DUPLICATE"
    HIGHLY_RELATED = "HIGHLY_RELATED"
    RELATED = "RELATED"
    LOOSELY_RELATED = "LOOSELY_RELATED"


class PageCategory(str, Enum):
    HOMEPAGE = "homepage"
    TRADING_PAIR = "trading-pair"
    TRADING_GENERAL = "trading-general"
    CRYPTO_SPECIFIC = "crypto-specific"
    MARKET_DATA = "market-data"
    PORTFOLIO = "portfolio"
    LEARN_HUB = "learn-hub"
    BLOG_ARTICLE = "blog-article"
    SECURITY_PAGE = "security-page"
    FEES_PRICING = "fees-pricing"
    API_DEVELOPER = "api-developer"
    SUPPORT_HELP = "support-help"
    LEGAL_COMPLIANCE = "legal-compliance"
    ABOUT_COMPANY = "about-company"
    OTHER = "other"


@dataclass(frozen=True)
class PageContent:
    """Main-content metrics for one analysed page."""

    word_count: int
    heading_count: int
    paragraph_count: int
    list_count: int
    quality: ContentQuality
    clean_text: str


@dataclass(frozen=True)
class Link:
    """A hyperlink found on the page together with its classification."""

    href: str
    anchor_text: str
    is_internal: bool
    context_class: Optional[ContextClass] = None
    nofollow: bool = False


@dataclass
class LinkSet:
    """Aggregate of every link on a page."""

    contextual_links: List[Link] = field(default_factory=list)
    template_links: List[Link] = field(default_factory=list)
    navigation_count: int = 0
    footer_count: int = 0
    external_count: int = 0
    nofollow_count: int = 0
    unique_contextual: Set[str] = field(default_factory=set)
    unique_template: Set[str] = field(default_factory=set)

    def add(self, link: Link) -> None:
        if not link.is_internal:
            self.external_count += 1
            return
        if link.context_class is ContextClass.CONTEXTUAL:
            self.contextual_links.append(link)
            self.unique_contextual.add(link.href)
            if link.nofollow:
                self.nofollow_count += 1
            return
        self.template_links.append(link)
        self.unique_template.add(link.href)
        if link.context_class is ContextClass.FOOTER:
            self.footer_count += 1
        else:
            self.navigation_count += 1

    @property
    def contextual_count(self) -> int:
        return len(self.contextual_links)

    @property
    def template_count(self) -> int:
        return len(self.template_links)

    @property
    def unique_ratio(self) -> float:
        return len(self.unique_contextual) / max(self.contextual_count, 1)


@dataclass(frozen=True)
class OpportunityAssessment:
    """Result of the additive link opportunity score."""

    score: int
    severity: Severity
    recommended_link_count: int
    current_link_count: int
    has_gap: bool
    density: float
    breakdown: List[Tuple[str, int]] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)

    @property
    def missing_links(self) -> int:
        return max(self.recommended_link_count - self.current_link_count, 0)


@dataclass(frozen=True)
class ExternalBalance:
    verdict: BalanceVerdict
    message: str


@dataclass(frozen=True)
class EmbeddingResult:
    """An embedding vector and the method that produced it."""

    vector: Embedding
    method: str


@dataclass(frozen=True)
class CandidatePage:
    """Another page of the site supplied by the host for comparison."""

    url: str
    title: str
    text: str
    html: Optional[str] = None
    embedding: Optional[str] = None


@dataclass(frozen=True)
class SimilarPage:
    url: str
    title: str
    similarity: float
    relationship: Relationship
    link_potential: str
    suggested_anchor: str


@dataclass(frozen=True)
class ThemeConsistency:
    score: Optional[float]
    level: str


@dataclass(frozen=True)
class ClusterMember:
    url: str
    title: str
    embedding: Embedding
    text: str = ""


@dataclass
class Cluster:
    """Pages whose embeddings are mutually similar above the cluster threshold."""

    id: int
    topic: str = ""
    members: List[ClusterMember] = field(default_factory=list)
    authority_page: Optional[str] = None

    @property
    def urls(self) -> List[str]:
        return [member.url for member in self.members]


@dataclass(frozen=True)
class ClusterAssignment:
    cluster: Optional[Cluster]
    topic: str
    related_pages: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.related_pages) + 1 if self.cluster else 0


@dataclass(frozen=True)
class CrossLink:
    source_url: str
    target_url: str
    anchor_text: str
    similarity: float


@dataclass(frozen=True)
class ContentGap:
    topic: str
    priority: str


@dataclass(frozen=True)
class SemanticAnalysis:
    """Everything the semantic layer contributes to the report."""

    embedding: EmbeddingResult
    similar_pages: List[SimilarPage]
    theme: ThemeConsistency
    cluster: ClusterAssignment
    cross_links: List[CrossLink]
    content_gaps: List[ContentGap]
    score: int
    grade: str
    insights: List[str] = field(default_factory=list)
