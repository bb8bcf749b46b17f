import pytest

from tripweave.modules.preprocessing.clustering import cluster_destinations
from tripweave.modules.tool_usage.distance_tool import haversine_km
from tripweave.schemas.route import ClusteringConfig
from tripweave.schemas.trip import Destination


def test_two_groups_80km_apart_form_two_clusters(two_group_trip, two_group_clusters):
    clusters, _ = two_group_clusters

    assert len(clusters) == 2
    groups = sorted(sorted(c.destination_ids) for c in clusters)
    assert groups == [["compiegne", "pierrefonds"], ["eiffel", "louvre", "orsay"]]


def test_clusters_partition_input_and_respect_seed_radius(two_group_trip, two_group_clusters):
    clusters, _ = two_group_clusters
    ids = [d_id for c in clusters for d_id in c.destination_ids]

    assert sorted(ids) == sorted(d.id for d in two_group_trip.destinations)
    for cluster in clusters:
        seed = cluster.destinations[0]
        for member in cluster.destinations:
            assert haversine_km(seed.latitude, seed.longitude, member.latitude, member.longitude) <= 50.0


def test_clusters_sorted_by_desirability_with_unique_center_ids(two_group_clusters):
    clusters, _ = two_group_clusters

    desirability = [c.desirability for c in clusters]
    assert desirability == sorted(desirability, reverse=True)
    assert len({c.center.id for c in clusters}) == len(clusters)
    assert all(c.center.id.endswith("-center") for c in clusters)


def test_grouping_is_seed_based_not_transitive(distance_tool):
    # a — b 40 km, b — c 40 km, a — c 80 km (along a meridian)
    a = Destination("a", "A", 45.0, 5.0)
    b = Destination("b", "B", 45.36, 5.0)
    c = Destination("c", "C", 45.72, 5.0)

    result = cluster_destinations([a, b, c], [], ClusteringConfig(max_cluster_radius_km=50), distance_tool)

    assert sorted(sorted(cl.destination_ids) for cl in result.clusters) == [["a", "b"], ["c"]]
    assert result.isolated_destination_ids == ["c"]


def test_unrated_cluster_uses_default_stay_and_zero_desirability(distance_tool):
    result = cluster_destinations([Destination("x", "X", 10.0, 10.0)], [], distance_tool=distance_tool)

    cluster = result.clusters[0]
    assert cluster.desirability == 0.0
    assert cluster.average_stay_time == 2.0
    assert cluster.center.latitude == pytest.approx(10.0)


def test_empty_input_gives_empty_result(distance_tool):
    assert cluster_destinations([], [], distance_tool=distance_tool).total_clusters == 0
