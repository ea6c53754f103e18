"""Flat report records handed back to the host application."""

from __future__ import annotations

from typing import Dict, List, Optional

from .config import EngineConfig
from .embeddings import FALLBACK_MODEL, METHOD_FALLBACK
from .errors import ConfigurationError, DimensionMismatch, InsufficientContent, LinkGapError
from .scoring import link_diversity, link_priority, quick_fix, summarize_breakdown
from .types import (
    ExternalBalance,
    LinkSet,
    OpportunityAssessment,
    PageCategory,
    PageContent,
    SemanticAnalysis,
)

Report = Dict[str, object]

STATUS_COMPLETE = "ANALYSIS_COMPLETE"
STATUS_ERROR = "ANALYSIS_ERROR"

DEFAULT_ACTIONS = (
    "Monitor current approach",
    "No additional actions needed",
    "Consider content expansion",
)


def build_report(
    url: str,
    category: PageCategory,
    content: PageContent,
    link_set: LinkSet,
    assessment: OpportunityAssessment,
    balance: ExternalBalance,
    actions: List[str],
    depth: int,
    config: EngineConfig,
    semantic: Optional[SemanticAnalysis] = None,
    skipped: Optional[InsufficientContent] = None,
) -> Report:
    """Assemble the report record for one analysed page."""

    report: Report = {
        "URL": url,
        "Page Type": category.value,
        "Content Words": content.word_count,
        "Content Quality": content.quality.value.upper(),
        "Contextual Links": link_set.contextual_count,
        "Unique Contextual": len(link_set.unique_contextual),
        "Link Diversity": link_diversity(link_set),
        "Template Links": link_set.template_count,
        "Navigation Links": link_set.navigation_count,
        "Footer Links": link_set.footer_count,
        "Nofollow Contextual": link_set.nofollow_count,
        "Contextual Density": f"{assessment.density:.1f}%",
        "Ideal Contextual Links": assessment.recommended_link_count,
        "Link Gap": f"{assessment.missing_links} MISSING" if assessment.has_gap else "NONE",
        "Gap Severity": assessment.severity.value.upper(),
        "External Link Balance": balance.message,
        "External Links": link_set.external_count,
        "Opportunity Score": f"{assessment.score}/100",
        "Score Breakdown": summarize_breakdown(assessment.breakdown) or "No issues scored",
        "URL Depth": depth,
        "Primary Issue": assessment.opportunities[0] if assessment.opportunities else "No significant issues",
    }
    for index, default in enumerate(DEFAULT_ACTIONS):
        report[f"Action {index + 1}"] = actions[index] if index < len(actions) else default
    report["Link Priority"] = link_priority(assessment.score)
    report["Quick Fix"] = quick_fix(link_set, content, category, assessment, config)

    if semantic is not None:
        report.update(semantic_fields(semantic, config))
    elif skipped is not None:
        report.update(
            {
                "Semantic Status": "INSUFFICIENT_CONTENT",
                "Semantic Score": "N/A",
                "Analysis Depth": "BASIC",
                "Semantic Recommendation": (
                    f"Add more content for semantic analysis ({skipped.words}/{skipped.minimum} words)"
                ),
            }
        )
    report["Status"] = STATUS_COMPLETE
    return report


def semantic_fields(semantic: SemanticAnalysis, config: EngineConfig) -> Report:
    top_similar = semantic.similar_pages[0] if semantic.similar_pages else None
    top_gap = semantic.content_gaps[0] if semantic.content_gaps else None
    cluster = semantic.cluster
    method = semantic.embedding.method
    insights = semantic.insights

    return {
        "Semantic Status": "COMPLETE",
        "Analysis Depth": "FULL",
        "Semantic Score": f"{semantic.score}/100",
        "Semantic Grade": semantic.grade,
        "Theme Alignment": "N/A" if semantic.theme.score is None else f"{semantic.theme.score:.4f}",
        "Consistency Level": semantic.theme.level,
        "Similar Pages Found": len(semantic.similar_pages),
        "Top Similar Page": top_similar.url if top_similar else "None",
        "Similarity Score": f"{top_similar.similarity:.4f}" if top_similar else "N/A",
        "Semantic Cluster": cluster.topic,
        "Cluster Size": cluster.size,
        "Cluster Authority": (cluster.cluster.authority_page or "N/A") if cluster.cluster else "N/A",
        "Cross-Link Suggestions": len(semantic.cross_links),
        "Top Cross-Link": (
            f"{semantic.cross_links[0].target_url} ({semantic.cross_links[0].anchor_text})"
            if semantic.cross_links
            else "None"
        ),
        "Content Gaps": len(semantic.content_gaps),
        "Priority Gap": f"{top_gap.topic} ({top_gap.priority})" if top_gap else "None",
        "Primary Insight": insights[0] if insights else "No specific insights",
        "Secondary Insight": insights[1] if len(insights) > 1 else "Analysis complete",
        "Action Priority": action_priority(semantic),
        "Embedding Method": method,
        "Model Used": FALLBACK_MODEL if method == METHOD_FALLBACK else config.ollama("model", "nomic-embed-text"),
        "Embedding Dimensions": len(semantic.embedding.vector),
    }


def action_priority(semantic: SemanticAnalysis) -> str:
    if semantic.score < 60:
        return "HIGH"
    if len(semantic.cross_links) > 3 or len(semantic.content_gaps) > 2:
        return "MEDIUM"
    return "LOW"


def error_report(url: str, error: Exception) -> Report:
    """Record returned in place of a report when the analysis had to stop."""

    if isinstance(error, DimensionMismatch):
        recommendation = "Embeddings of different sizes were mixed; use one embedding model per run and retry"
    elif isinstance(error, ConfigurationError):
        recommendation = "Fix the analyzer configuration and retry"
    else:
        recommendation = "Check Ollama connection and retry"

    return {
        "URL": url,
        "Status": STATUS_ERROR,
        "Error Type": type(error).__name__,
        "Error Message": str(error),
        "Failed Operation": error.operation if isinstance(error, LinkGapError) else None,
        "Semantic Score": "ERROR",
        "Recommendation": recommendation,
        "Action Priority": "HIGH",
    }
