"""Configuration helpers for the link gap engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError


@dataclass(frozen=True)
class EngineConfig:
    """Typed wrapper around the engine configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def ollama(self, key: str, default: Any = None) -> Any:
        return self.raw.get("ollama", {}).get(key, default)

    def semantic(self, key: str, default: Any = None) -> Any:
        return self.raw.get("semantic", {}).get(key, default)

    def category_rule(self, category: str) -> Dict[str, Any] | None:
        return self.raw.get("category_rules", {}).get(category)

    def validate(self) -> "EngineConfig":
        """Raise ``ConfigurationError`` for settings that can never work."""

        endpoint = str(self.ollama("endpoint", ""))
        parsed = urlparse(endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ConfigurationError(f"Embedding endpoint must be an http(s) URL, got {endpoint!r}")
        try:
            parsed.port
        except ValueError as exc:
            raise ConfigurationError(f"Embedding endpoint has an invalid port: {endpoint!r}") from exc
        if int(self.ollama("dimensions", 0)) <= 0:
            raise ConfigurationError("Embedding dimensions must be positive")
        if int(self.ollama("max_retries", 0)) < 1:
            raise ConfigurationError("max_retries must be at least 1")
        if float(self.get("contextual_link_target", 0)) <= 0:
            raise ConfigurationError("contextual_link_target must be positive")
        if float(self.get("max_contextual_density", 0)) < float(self.get("min_contextual_density", 0)):
            raise ConfigurationError("max_contextual_density must not be below min_contextual_density")
        if int(self.get("medium_content_threshold", 0)) < int(self.get("thin_content_threshold", 0)):
            raise ConfigurationError("medium_content_threshold must not be below thin_content_threshold")
        for key in ("similarity_threshold", "high_similarity_threshold", "cluster_threshold"):
            value = float(self.semantic(key, 0.0))
            if not 0.0 < value <= 1.0:
                raise ConfigurationError(f"{key} must be within (0, 1], got {value}")
        return self


DEFAULTS: Dict[str, Any] = {
    "contextual_link_target": 100,
    "min_contextual_density": 0.8,
    "max_contextual_density": 3.0,
    "thin_content_threshold": 300,
    "medium_content_threshold": 800,
    "min_words_for_links": 50,
    "broken_page_words": 10,
    "external_warning_ratio": 2.0,
    "external_only_min": 10,
    "duplicate_min_links": 5,
    "duplicate_unique_ratio": 0.7,
    "depth_free_levels": 3,
    "min_main_content_words": 50,
    "max_recommendations": 3,
    "category_rules": {
        "homepage": {"min_links": 4, "weight": 20, "message": "Homepage needs strong internal linking foundation"},
        "trading-pair": {
            "min_links": 3,
            "weight": 15,
            "message": "Trading pairs should link to: guides, security, related pairs",
        },
        "crypto-specific": {
            "min_links": 4,
            "weight": 15,
            "message": "Crypto pages should link to: trading, market data, guides, news",
        },
        "learn-hub": {"min_links": 5, "weight": 18, "message": "Educational content needs cross-links to related lessons"},
        "blog-article": {"min_links": 3, "weight": 12, "message": "Articles should reference related posts and crypto pages"},
        "market-data": {"min_links": 2, "weight": 10, "message": "Market pages should link to trading and crypto info"},
    },
    "category_suggestions": {
        "trading-pair": [
            "Link to security/safety guides",
            "Reference related trading pairs",
            "Connect to educational content about this crypto",
        ],
        "crypto-specific": [
            "Link to current market data/charts",
            "Reference trading pages for this crypto",
            "Connect to news/updates about this coin",
        ],
        "learn-hub": [
            "Cross-reference prerequisite lessons",
            "Link to practical examples/trading pages",
            "Reference related educational content",
        ],
        "blog-article": [
            "Link to mentioned cryptocurrencies",
            "Reference related news articles",
            "Connect to relevant guides/tutorials",
        ],
        "market-data": [
            "Link to trading pages for displayed pairs",
            "Reference analysis/news for featured cryptos",
        ],
        "homepage": [
            "Feature key trading pairs",
            "Link to educational content for beginners",
            "Highlight security/trust signals",
        ],
    },
    "ollama": {
        "endpoint": "http://localhost:11434",
        "model": "nomic-embed-text",
        "timeout": 30.0,
        "probe_timeout": 5.0,
        "max_retries": 3,
        "backoff_base": 0.5,
        "rate_limit_delay": 0.15,
        "batch_size": 20,
        "max_content_length": 8192,
        "dimensions": 768,
    },
    "semantic": {
        "similarity_threshold": 0.85,
        "high_similarity_threshold": 0.95,
        "related_threshold": 0.75,
        "cluster_threshold": 0.8,
        "max_similar_pages": 10,
        "max_suggestions_per_page": 5,
        "min_content_words": 100,
        "centroid_sample_size": 50,
        "min_centroid_pages": 2,
    },
    "topic_keywords": {
        "trading": ["trade", "trading", "buy", "sell", "exchange"],
        "security": ["security", "safe", "protection", "secure", "encryption"],
        "education": ["learn", "guide", "tutorial", "education", "course"],
        "fees": ["fee", "fees", "cost", "price", "pricing", "charge"],
        "crypto": ["bitcoin", "ethereum", "cryptocurrency", "crypto", "coin"],
        "support": ["support", "help", "contact", "faq"],
    },
    "expected_topics": {
        "homepage": ["trading", "security", "fees", "support", "education"],
        "trading-pair": ["trading", "crypto", "fees", "security"],
        "trading-general": ["trading", "fees", "security"],
        "crypto-specific": ["crypto", "trading", "education"],
        "market-data": ["crypto", "trading"],
        "learn-hub": ["education", "crypto", "security"],
        "blog-article": ["crypto", "education"],
        "security-page": ["security", "support"],
        "fees-pricing": ["fees", "trading"],
        "support-help": ["support", "security"],
    },
    "gap_priorities": {
        "HIGH": ["security", "trading", "fees"],
        "MEDIUM": ["education", "support", "crypto"],
        "LOW": ["about", "legal", "careers"],
    },
}


def load_config(path: str | Path | None = None, overrides: Dict[str, Any] | None = None) -> EngineConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            try:
                user = yaml.safe_load(stream) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(user, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        merge_into(data, user)

    if overrides:
        merge_into(data, overrides)

    return EngineConfig(data)


def merge_into(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
