"""
modules/planning/cluster_internal.py
--------------------------------------
Cluster-Internal Optimizer: the visiting order inside one cluster.

Entry point = the member nearest to where the group arrives from; the rest
follow by greedy nearest-neighbor.  Intra-cluster hops are charged as
walking through estimate_travel_time (5 km/h with the ×1.1 walking buffer),
the same figure the itinerary gives a walking-range leg.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.modules.tool_usage.transport_tool import estimate_travel_time
from tripweave.schemas.route import DestinationCluster, TransportConfig, TransportMode
from tripweave.schemas.trip import Destination, Location

logger = logging.getLogger(__name__)

_MAX_INTERNAL_DISTANCE_KM: float = 50.0


@dataclass
class ClusterRoute:
    cluster: DestinationCluster
    ordered_destinations: list[Destination] = field(default_factory=list)
    entry_point: Optional[Destination] = None
    internal_distance_km: float = 0.0
    internal_travel_hours: float = 0.0
    total_time_hours: float = 0.0            # stay × count + internal travel


def optimize_cluster_internally(
    cluster: DestinationCluster,
    arrival_point: Location,
    distance_tool: Optional[DistanceTool] = None,
    transport_config: Optional[TransportConfig] = None,
) -> ClusterRoute:
    distance_tool = distance_tool or DistanceTool()
    transport_config = transport_config or TransportConfig()
    route = ClusterRoute(cluster=cluster)
    if not cluster.destinations:
        return route

    remaining = list(cluster.destinations)
    entry = min(remaining, key=lambda d: distance_tool.distance_km(arrival_point, d.location))
    remaining.remove(entry)
    route.entry_point = entry
    route.ordered_destinations.append(entry)

    current = entry
    while remaining:
        nxt = min(remaining, key=lambda d: distance_tool.distance_km(current.location, d.location))
        hop_km = distance_tool.distance_km(current.location, nxt.location)
        route.internal_distance_km += hop_km
        route.internal_travel_hours += estimate_travel_time(hop_km, TransportMode.WALKING, transport_config)
        route.ordered_destinations.append(nxt)
        remaining.remove(nxt)
        current = nxt

    route.total_time_hours = cluster.total_stay_hours + route.internal_travel_hours
    return route


def validate_cluster_route(route: ClusterRoute) -> tuple[bool, list[str]]:
    issues: list[str] = []
    ids = [d.id for d in route.ordered_destinations]

    if not ids:
        issues.append(f"Cluster {route.cluster.id} has no destinations")
    if len(ids) != len(set(ids)):
        issues.append(f"Cluster {route.cluster.id} visits a destination more than once")
    if set(ids) != set(route.cluster.destination_ids):
        issues.append(f"Cluster {route.cluster.id} route does not cover every member")
    if route.internal_distance_km > _MAX_INTERNAL_DISTANCE_KM:
        issues.append(
            f"Cluster {route.cluster.id} internal route is {route.internal_distance_km:.1f} km "
            f"(over {_MAX_INTERNAL_DISTANCE_KM:.0f} km)"
        )
    return len(issues) == 0, issues
