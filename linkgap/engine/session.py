"""Per-run analysis state shared by the embedding and similarity components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from .types import Cluster, Embedding, EmbeddingResult


@dataclass
class AnalysisSession:
    """Transient caches for one analysis run.

    The session owns the embedding cache (keyed by the exact normalised text),
    the site centroid, the clusters built for the current page set and a few
    counters. Clusters are reused only while the page set stays the same. It is
    a context manager; leaving the ``with`` block clears everything so nothing
    leaks into an independent run.
    """

    embeddings: Dict[str, EmbeddingResult] = field(default_factory=dict)
    centroid: Optional[Embedding] = None
    centroid_ready: bool = False
    clusters: List[Cluster] = field(default_factory=list)
    clusters_ready: bool = False
    cluster_key: FrozenSet[str] = frozenset()
    assignments: Dict[str, int] = field(default_factory=dict)
    service_available: Optional[bool] = None
    stats: Counter = field(default_factory=Counter)

    def __enter__(self) -> "AnalysisSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.clear()
        return False

    def set_centroid(self, centroid: Optional[Embedding]) -> None:
        self.centroid = centroid
        self.centroid_ready = True

    def set_clusters(self, clusters: List[Cluster], key: FrozenSet[str] = frozenset()) -> None:
        self.clusters = list(clusters)
        self.clusters_ready = True
        self.cluster_key = key
        self.assignments = {url: cluster.id for cluster in clusters for url in cluster.urls}

    def clear(self) -> None:
        self.embeddings.clear()
        self.centroid = None
        self.centroid_ready = False
        self.clusters = []
        self.clusters_ready = False
        self.cluster_key = frozenset()
        self.assignments = {}
        self.service_available = None
        self.stats.clear()
