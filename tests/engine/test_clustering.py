"""Topic clustering and cross-link proposal tests."""

from __future__ import annotations

from linkgap.engine.clustering import (
    UNCLUSTERED,
    assign_cluster,
    authority_page,
    build_clusters,
    cluster_topic,
    propose_cross_links,
)
from linkgap.engine.config import load_config
from linkgap.engine.types import Cluster, ClusterMember

LEFT = ClusterMember(url="/l", title="Left page | Example", embedding=[1.0, 0.6], text="bitcoin wallet security guide")
MIDDLE = ClusterMember(url="/m", title="Middle page | Example", embedding=[1.0, 1.0], text="bitcoin wallet backup")
RIGHT = ClusterMember(url="/r", title="Right page | Example", embedding=[0.6, 1.0], text="wallet recovery")

X = ClusterMember(url="/x", title="X", embedding=[1.0, 0.0])
Y = ClusterMember(url="/y", title="Y", embedding=[1.0, 1.0])
Z = ClusterMember(url="/z", title="Z", embedding=[0.0, 1.0])


def test_similar_pages_share_a_cluster(engine_config):
    clusters = build_clusters([LEFT, MIDDLE, RIGHT], engine_config)

    assert len(clusters) == 1
    assert clusters[0].id == 1
    assert clusters[0].urls == ["/l", "/m", "/r"]
    assert clusters[0].authority_page == "/m"
    assert clusters[0].topic == "WALLET_BITCOIN"


def test_single_link_clusters_depend_on_input_order():
    config = load_config(None, {"semantic": {"cluster_threshold": 0.6}})

    bridged = build_clusters([X, Y, Z], config)
    split = build_clusters([X, Z, Y], config)

    assert [cluster.urls for cluster in bridged] == [["/x", "/y", "/z"]]
    assert [cluster.urls for cluster in split] == [["/x", "/y"], ["/z"]]
    assert [cluster.id for cluster in split] == [1, 2]


def test_cluster_topic_falls_back_to_id():
    cluster = Cluster(id=7, members=[ClusterMember(url="/a", title="", embedding=[1.0])])

    assert cluster_topic(cluster) == "CLUSTER_7"


def test_authority_prefers_first_member_on_ties():
    cluster = Cluster(id=1, members=[X, ClusterMember(url="/x2", title="X2", embedding=[1.0, 0.0])])

    assert authority_page(cluster) == "/x"


def test_assign_cluster(engine_config):
    clusters = build_clusters([LEFT, MIDDLE, RIGHT], engine_config)

    member = assign_cluster("/m", MIDDLE.embedding, clusters, engine_config)
    newcomer = assign_cluster("/new", [1.0, 0.9], clusters, engine_config)
    outsider = assign_cluster("/far", [-1.0, 0.0], clusters, engine_config)

    assert member.related_pages == ["/l", "/r"]
    assert member.size == 3
    assert member.topic == clusters[0].topic
    assert newcomer.related_pages == ["/l", "/m", "/r"]
    assert newcomer.size == 4
    assert outsider.cluster is None
    assert outsider.topic == UNCLUSTERED
    assert outsider.size == 0


def test_page_alone_in_its_cluster_is_unclustered(engine_config):
    clusters = build_clusters([X, Z], engine_config)

    assignment = assign_cluster("/x", X.embedding, clusters, engine_config)

    assert len(clusters) == 2
    assert assignment.topic == UNCLUSTERED
    assert assignment.related_pages == []


def test_cross_links_lead_with_authority(engine_config):
    cluster = build_clusters([LEFT, MIDDLE, RIGHT], engine_config)[0]

    links = propose_cross_links(LEFT, cluster, engine_config)

    assert [link.target_url for link in links] == ["/m", "/r"]
    assert links[0].anchor_text == "Middle page"
    assert links[0].source_url == "/l"

    cluster.authority_page = "/r"
    assert [link.target_url for link in propose_cross_links(LEFT, cluster, engine_config)] == ["/r", "/m"]


def test_cross_links_respect_threshold_and_cap(engine_config):
    cluster = build_clusters([LEFT, MIDDLE, RIGHT], engine_config)[0]

    capped = propose_cross_links(LEFT, cluster, load_config(None, {"semantic": {"max_suggestions_per_page": 1}}))
    strict = propose_cross_links(LEFT, cluster, load_config(None, {"semantic": {"cluster_threshold": 0.9}}))

    assert [link.target_url for link in capped] == ["/m"]
    assert [link.target_url for link in strict] == ["/m"]
    assert propose_cross_links(LEFT, None, engine_config) == []
