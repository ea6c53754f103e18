"""Single-link topic clustering over page embeddings."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import EngineConfig
from .similarity import cosine_similarity, suggest_anchor_text
from .text import top_terms
from .types import Cluster, ClusterAssignment, ClusterMember, CrossLink, Embedding

logger = logging.getLogger(__name__)

UNCLUSTERED = "UNCLUSTERED"


def _joins(embedding: Embedding, cluster: Cluster, threshold: float) -> bool:
    return any(cosine_similarity(embedding, member.embedding) > threshold for member in cluster.members)


def cluster_topic(cluster: Cluster) -> str:
    terms = top_terms((member.text or member.title for member in cluster.members), limit=2)
    if not terms:
        return f"CLUSTER_{cluster.id}"
    return "_".join(terms).upper()


def authority_page(cluster: Cluster) -> Optional[str]:
    """Member with the highest summed similarity to the rest of the cluster."""

    best_url: Optional[str] = None
    best_total = float("-inf")
    for member in cluster.members:
        total = sum(
            cosine_similarity(member.embedding, other.embedding) for other in cluster.members if other is not member
        )
        if total > best_total:
            best_url, best_total = member.url, total
    return best_url


def build_clusters(pages: Sequence[ClusterMember], config: EngineConfig) -> List[Cluster]:
    """Group pages in input order; each joins the first cluster it is similar to."""

    threshold = config.semantic("cluster_threshold", 0.8)
    clusters: List[Cluster] = []
    for page in pages:
        for cluster in clusters:
            if _joins(page.embedding, cluster, threshold):
                cluster.members.append(page)
                break
        else:
            clusters.append(Cluster(id=len(clusters) + 1, members=[page]))

    for cluster in clusters:
        cluster.topic = cluster_topic(cluster)
        cluster.authority_page = authority_page(cluster)
    logger.debug("Built %d clusters from %d pages", len(clusters), len(pages))
    return clusters


def assign_cluster(url: str, embedding: Embedding, clusters: Sequence[Cluster], config: EngineConfig) -> ClusterAssignment:
    """Place the page in the first cluster (by id) that holds it or that it is similar to.

    A cluster holding nothing but the page itself does not count.
    """

    threshold = config.semantic("cluster_threshold", 0.8)
    for cluster in sorted(clusters, key=lambda item: item.id):
        related = [member for member in cluster.urls if member != url]
        if not related:
            continue
        if url in cluster.urls or _joins(embedding, cluster, threshold):
            return ClusterAssignment(cluster=cluster, topic=cluster.topic, related_pages=related)
    return ClusterAssignment(cluster=None, topic=UNCLUSTERED, related_pages=[])


def propose_cross_links(source: ClusterMember, cluster: Optional[Cluster], config: EngineConfig) -> List[CrossLink]:
    """Links from ``source`` to fellow cluster members.

    The link to the cluster's authority page comes first, the rest follow by
    descending similarity. Only members above the cluster threshold qualify.
    """

    if cluster is None:
        return []
    threshold = config.semantic("cluster_threshold", 0.8)
    links: List[CrossLink] = []
    for member in cluster.members:
        if member.url == source.url:
            continue
        similarity = cosine_similarity(source.embedding, member.embedding)
        if similarity <= threshold:
            continue
        links.append(
            CrossLink(
                source_url=source.url,
                target_url=member.url,
                anchor_text=suggest_anchor_text(member.title, member.text),
                similarity=similarity,
            )
        )
    links.sort(key=lambda link: (link.target_url != cluster.authority_page, -link.similarity))
    return links[: int(config.semantic("max_suggestions_per_page", 5))]
