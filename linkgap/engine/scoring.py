"""Opportunity scoring, link balance checks and recommendations."""

from __future__ import annotations

import math
from typing import List, Tuple

from .config import EngineConfig
from .types import (
    BalanceVerdict,
    ContentQuality,
    ExternalBalance,
    LinkSet,
    OpportunityAssessment,
    PageCategory,
    PageContent,
    Severity,
)

# Precedence of opportunity messages; lower sorts first.
_DUPLICATE = 2
_OVER_LINKING = 3
_PRIMARY_GAP = 4
_CATEGORY = 5
_DEPTH = 6


def ideal_link_count(word_count: int, config: EngineConfig) -> int:
    return max(1, math.floor(word_count / config.get("contextual_link_target", 100)))


def contextual_density(link_set: LinkSet, word_count: int) -> float:
    if word_count <= 0:
        return 0.0
    return link_set.contextual_count / word_count * 100


def has_duplicate_issue(link_set: LinkSet, config: EngineConfig) -> bool:
    return (
        link_set.contextual_count > config.get("duplicate_min_links", 5)
        and link_set.unique_ratio < config.get("duplicate_unique_ratio", 0.7)
    )


def score_opportunity(
    link_set: LinkSet,
    content: PageContent,
    category: PageCategory,
    url_depth: int,
    config: EngineConfig,
) -> OpportunityAssessment:
    """Return the additive 0-100 opportunity score for the page."""

    words = content.word_count
    current = link_set.contextual_count
    density = contextual_density(link_set, words)

    if words < config.get("broken_page_words", 10):
        return OpportunityAssessment(
            score=90,
            severity=Severity.CRITICAL,
            recommended_link_count=1,
            current_link_count=current,
            has_gap=True,
            density=density,
            breakdown=[("Critical: Broken/empty page", 90)],
            opportunities=[f"CRITICAL: Only {words} words - page appears broken or empty"],
        )

    if words < config.get("min_words_for_links", 50):
        return OpportunityAssessment(
            score=50,
            severity=Severity.MEDIUM,
            recommended_link_count=1,
            current_link_count=current,
            has_gap=True,
            density=density,
            breakdown=[("Thin content penalty", 50)],
            opportunities=[f"THIN CONTENT: {words} words insufficient for contextual linking"],
        )

    ideal = ideal_link_count(words, config)
    total = 0
    breakdown: List[Tuple[str, int]] = []
    ranked: List[Tuple[int, int, str]] = []
    severity = Severity.NONE

    def record(label: str, points: int, rank: int, message: str) -> None:
        nonlocal total
        total += points
        breakdown.append((label, points))
        ranked.append((rank, len(ranked), message))

    # 1. Gap severity (0-40)
    if current == 0:
        severity = Severity.CRITICAL
        record("Zero contextual links", 40, _PRIMARY_GAP, f"CRITICAL GAP: Zero contextual links in {words} words")
    elif current < ideal:
        deficit = ideal - current
        severity = Severity.HIGH if deficit >= 3 else Severity.MEDIUM
        record(
            f"Link deficit: {deficit} missing",
            min(30, deficit * 8),
            _PRIMARY_GAP,
            f"LINK GAP: Need {deficit} more contextual links ({current}/{ideal})",
        )

    # 2. Density imbalance (0-25); a density is either too low or too high, never both.
    min_density = config.get("min_contextual_density", 0.8)
    max_density = config.get("max_contextual_density", 3.0)
    if density < min_density:
        record(
            f"Low density: {density:.1f}%",
            15,
            _PRIMARY_GAP,
            f"LOW DENSITY: {density:.1f}% contextual density (target: {min_density}%+)",
        )
    elif density > max_density:
        record(
            f"Over-linking: {density:.1f}%",
            20,
            _OVER_LINKING,
            f"OVER-LINKED: {density:.1f}% density exceeds {max_density}% maximum",
        )

    # 3. Page category weighting (0-20)
    rule = config.category_rule(category.value)
    if rule and current < rule.get("min_links", 0):
        weight = int(rule.get("weight", 0))
        record(f"Page type priority: {category.value}", weight, _CATEGORY, f"PAGE TYPE: {rule.get('message', '')}")

    # 4. Duplicate links (0-15)
    if has_duplicate_issue(link_set, config):
        unique = len(link_set.unique_contextual)
        duplicates = current - unique
        record(
            f"Duplicate links: {duplicates} redundant",
            15,
            _DUPLICATE,
            f"DUPLICATE LINKS: {duplicates} redundant links to same {unique} targets",
        )

    # 5. URL depth (0-10)
    free_levels = config.get("depth_free_levels", 3)
    if url_depth > free_levels:
        record(
            f"Deep page: Level {url_depth}",
            min(10, (url_depth - free_levels) * 3),
            _DEPTH,
            f"DEEP PAGE: Level {url_depth} needs links from higher-level pages",
        )

    ranked.sort()
    limit = int(config.get("max_recommendations", 3))
    return OpportunityAssessment(
        score=max(0, min(total, 100)),
        severity=severity,
        recommended_link_count=ideal,
        current_link_count=current,
        has_gap=severity is not Severity.NONE,
        density=density,
        breakdown=breakdown,
        opportunities=[message for _, _, message in ranked[:limit]],
    )


def external_balance(link_set: LinkSet, config: EngineConfig) -> ExternalBalance:
    """Flag pages whose external links outweigh their contextual links."""

    contextual = link_set.contextual_count
    external = link_set.external_count
    ratio = external / max(contextual, 1)
    if contextual > 0 and ratio > config.get("external_warning_ratio", 2.0):
        return ExternalBalance(
            BalanceVerdict.HIGH_EXTERNAL_RATIO,
            f"HIGH EXTERNAL RATIO: {external} external vs {contextual} contextual",
        )
    if contextual == 0 and external > config.get("external_only_min", 10):
        return ExternalBalance(
            BalanceVerdict.EXTERNAL_ONLY,
            f"EXTERNAL ONLY: {external} external links but zero contextual",
        )
    return ExternalBalance(BalanceVerdict.BALANCED, "BALANCED")


def link_diversity(link_set: LinkSet) -> str:
    if link_set.contextual_count == 0:
        return "N/A"
    return f"{math.floor(link_set.unique_ratio * 100 + 0.5)}%"


def recommend_actions(
    link_set: LinkSet,
    content: PageContent,
    category: PageCategory,
    assessment: OpportunityAssessment,
    balance: ExternalBalance,
    config: EngineConfig,
) -> List[str]:
    """Return up to three actions in fixed precedence order."""

    words = content.word_count
    current = link_set.contextual_count
    unique = len(link_set.unique_contextual)
    density = contextual_density(link_set, words)
    max_density = config.get("max_contextual_density", 3.0)
    is_blog = "blog" in category.value

    if words < config.get("broken_page_words", 10):
        return [f"BROKEN PAGE: Only {words} words detected - check content extraction or page structure"]
    if words < config.get("min_words_for_links", 50) and is_blog:
        return [f"BLOG FAILURE: {words} words on blog page - add substantial content immediately"]

    actions: List[str] = []

    if balance.verdict is not BalanceVerdict.BALANCED:
        detail = balance.message.split(": ", 1)[-1]
        actions.append(f"LINK BALANCE: {detail}")

    if has_duplicate_issue(link_set, config):
        actions.append(f"REMOVE {current - unique} DUPLICATE LINKS: {current} links -> only {unique} unique targets")

    if density > max_density:
        excess = current - math.ceil(words * 0.025)
        actions.append(f"REDUCE LINKS: {density:.1f}% density -> remove {excess} contextual links")

    needed = assessment.missing_links
    if assessment.has_gap and needed > 0:
        if assessment.severity is Severity.CRITICAL:
            actions.append(f"ADD {needed} CONTEXTUAL LINKS: Zero internal links in content body")
        elif assessment.severity is Severity.HIGH:
            actions.append(f"ADD {needed} MORE LINKS: Currently {current}/{assessment.recommended_link_count}")
        else:
            actions.append(f"OPTIMIZE: Add {needed} contextual links for better internal linking")

    if category is PageCategory.HOMEPAGE and current > 10 and link_set.unique_ratio < 0.8:
        actions.append("HOMEPAGE FOCUS: Prioritize 8-12 unique high-value pages instead of repeating links")

    suggestions = config.get("category_suggestions", {}).get(category.value)
    if (
        suggestions
        and assessment.has_gap
        and density <= max_density
        and (current == 0 or link_set.unique_ratio >= config.get("duplicate_unique_ratio", 0.7))
    ):
        actions.append(f"SPECIFIC IDEAS: {' | '.join(suggestions[:2])}")

    if content.quality is ContentQuality.THIN:
        if category is PageCategory.HOMEPAGE:
            actions.append(f"HOMEPAGE CONTENT: Expand beyond {words} words for better context")
        else:
            actions.append(f"EXPAND CONTENT: {words} words is thin - longer copy creates natural link placements")

    return actions[: int(config.get("max_recommendations", 3))]


def link_priority(score: int) -> str:
    if score >= 50:
        return "HIGH"
    if score >= 25:
        return "MEDIUM"
    return "LOW"


def quick_fix(
    link_set: LinkSet,
    content: PageContent,
    category: PageCategory,
    assessment: OpportunityAssessment,
    config: EngineConfig,
) -> str:
    """Return the single most urgent action for the page."""

    words = content.word_count
    min_words = config.get("min_words_for_links", 50)
    if words < config.get("broken_page_words", 10):
        return "URGENT: Fix broken/empty page content"
    if words < min_words and "blog" in category.value:
        return "URGENT: Add substantial blog content"
    if link_set.contextual_count == 0 and words >= min_words:
        return "Add 1-2 contextual links immediately"
    if assessment.has_gap and assessment.missing_links > 0:
        return f"Add {assessment.missing_links} more links"
    if has_duplicate_issue(link_set, config):
        return "Remove duplicate links"
    return "Maintain current linking"


def summarize_breakdown(breakdown: List[Tuple[str, int]]) -> str:
    return " | ".join(f"{label} (+{points})" for label, points in breakdown)

