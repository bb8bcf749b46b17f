"""
modules/preprocessing/clustering.py
-------------------------------------
Geographic Clustering Engine.

Seed-order fixed-radius grouping:
  for each unclustered destination (input order) → take it as seed, add every
  other unclustered destination within `max_cluster_radius_km` of the SEED,
  emit one cluster.

Membership is measured against the seed only, so the grouping is not
transitive and depends on input order.  Clusters are then scored with the
group's standardized preferences and sorted by desirability (descending,
stable).
"""

from __future__ import annotations
import logging
from collections import Counter
from typing import Optional, Sequence

from tripweave.modules.tool_usage.distance_tool import DistanceTool, spherical_centroid
from tripweave.schemas.preferences import StandardizedPreference
from tripweave.schemas.route import ClusteringConfig, ClusteringResult, DestinationCluster
from tripweave.schemas.trip import Destination

logger = logging.getLogger(__name__)


def _cluster_name(members: list[Destination]) -> str:
    if len(members) == 1:
        return members[0].name
    if len(members) == 2:
        return f"{members[0].name} & {members[1].name}"
    return f"{members[0].name}, {members[1].name} +{len(members) - 2} more"


def _score_cluster(
    cluster: DestinationCluster,
    preferences: Sequence[StandardizedPreference],
    default_stay_hours: float,
) -> None:
    member_ids = set(cluster.destination_ids)
    relevant = [p for p in preferences if p.destination_id in member_ids]

    if relevant:
        cluster.desirability = sum(p.standardized_score for p in relevant) / len(relevant)
        cluster.average_stay_time = sum(p.preferred_duration_hours for p in relevant) / len(relevant)
    else:
        cluster.desirability = 0.0
        cluster.average_stay_time = default_stay_hours

    for p in relevant:
        cluster.member_preferences[p.traveler_key] = (
            cluster.member_preferences.get(p.traveler_key, 0.0) + p.standardized_score
        )


def _validate_partition(destinations: Sequence[Destination], clusters: list[DestinationCluster]) -> None:
    counts = Counter(d_id for c in clusters for d_id in c.destination_ids)
    missing = [d.id for d in destinations if d.id not in counts]
    repeated = [d_id for d_id, n in counts.items() if n > 1]
    if missing or repeated or sum(counts.values()) != len(destinations):
        raise RuntimeError(
            f"ERROR_CLUSTER_PARTITION: clusters do not partition the destinations "
            f"(missing={missing}, repeated={repeated})"
        )


def cluster_destinations(
    destinations: Sequence[Destination],
    preferences: Sequence[StandardizedPreference],
    cfg: Optional[ClusteringConfig] = None,
    distance_tool: Optional[DistanceTool] = None,
) -> ClusteringResult:
    """
    Group destinations into clusters of radius `cfg.max_cluster_radius_km`.

    Raises:
        RuntimeError: if the clusters do not partition the input.
    """
    cfg = cfg or ClusteringConfig()
    distance_tool = distance_tool or DistanceTool()

    if not destinations:
        return ClusteringResult()

    clustered: set[str] = set()
    clusters: list[DestinationCluster] = []

    for seed in destinations:
        if seed.id in clustered:
            continue
        members = [seed]
        clustered.add(seed.id)
        for other in destinations:
            if other.id in clustered:
                continue
            if distance_tool.distance_km(seed.location, other.location) <= cfg.max_cluster_radius_km:
                members.append(other)
                clustered.add(other.id)

        cluster_id = f"cluster-{len(clusters) + 1}"
        center = spherical_centroid([m.location for m in members], centroid_id=f"{cluster_id}-center")
        cluster = DestinationCluster(
            id=cluster_id,
            destinations=members,
            center=center,
            name=_cluster_name(members),
        )
        _score_cluster(cluster, preferences, cfg.default_stay_hours)
        clusters.append(cluster)

    _validate_partition(destinations, clusters)

    clusters.sort(key=lambda c: c.desirability, reverse=True)

    matrix: dict[str, dict[str, float]] = {
        a.id: {b.id: distance_tool.distance_km(a, b) for b in clusters}
        for a in clusters
    }

    result = ClusteringResult(
        clusters=clusters,
        isolated_destination_ids=[c.destinations[0].id for c in clusters if len(c.destinations) == 1],
        average_cluster_size=len(destinations) / len(clusters),
        distance_matrix=matrix,
    )
    logger.info(
        "Clustered %d destination(s) into %d cluster(s) (radius %.0f km)",
        len(destinations), len(clusters), cfg.max_cluster_radius_km,
    )
    return result
