"""
modules/planning/tsp.py
-------------------------
Route construction heuristics over cluster stops.

A route is an ordered list of DestinationClusters travelled as
  departure → c1 → … → cn → return
where departure and return are fixed Locations.  Every distance goes through
the injected DistanceTool (and therefore the shared DistanceCache).
"""

from __future__ import annotations
import random
from typing import Optional, Sequence

from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.schemas.route import DestinationCluster, TwoOptResult
from tripweave.schemas.trip import Location

_IMPROVEMENT_EPSILON: float = 1e-9
_MAX_TWO_OPT_SWAPS:   int   = 10_000


def nearest_neighbor_route(
    start,
    clusters: Sequence[DestinationCluster],
    distance_tool: DistanceTool,
) -> list[DestinationCluster]:
    """Greedy: always hop to the closest unvisited cluster (ties → input order)."""
    remaining = list(clusters)
    route: list[DestinationCluster] = []
    current = start
    while remaining:
        nearest = min(remaining, key=lambda c: distance_tool.distance_km(current, c))
        route.append(nearest)
        remaining.remove(nearest)
        current = nearest
    return route


def route_with_start(
    first: DestinationCluster,
    clusters: Sequence[DestinationCluster],
    distance_tool: DistanceTool,
) -> list[DestinationCluster]:
    """*first*, then nearest-neighbor through the rest."""
    rest = [c for c in clusters if c.id != first.id]
    return [first] + nearest_neighbor_route(first, rest, distance_tool)


def random_route(clusters: Sequence[DestinationCluster], rng: random.Random) -> list[DestinationCluster]:
    route = list(clusters)
    rng.shuffle(route)
    return route


def total_route_distance(
    departure: Location,
    route: Sequence[DestinationCluster],
    return_location: Optional[Location],
    distance_tool: DistanceTool,
) -> float:
    stops = [departure, *route, return_location or departure]
    return sum(distance_tool.distance_km(a, b) for a, b in zip(stops, stops[1:]))


def two_opt_improvement(
    departure: Location,
    route: Sequence[DestinationCluster],
    return_location: Optional[Location],
    distance_tool: DistanceTool,
) -> tuple[list[DestinationCluster], TwoOptResult]:
    """
    2-opt over the path [departure, c1..cn, return].

    For i in 0..n−1 and j in i+2..n, reversing positions i+1..j replaces edges
    (i, i+1) and (j, j+1) with (i, j) and (i+1, j+1).  A swap is accepted only
    on a strict decrease; the scan restarts after each swap and stops after a
    clean pass.  Departure and return never move.
    """
    original = total_route_distance(departure, route, return_location, distance_tool)
    result = TwoOptResult(original_distance_km=original, new_distance_km=original)
    if len(route) < 2:
        return list(route), result

    path: list = [departure, *route, return_location or departure]
    n = len(route)
    d = distance_tool.distance_km

    improved = True
    while improved and result.swaps_performed < _MAX_TWO_OPT_SWAPS:
        improved = False
        for i in range(n):
            for j in range(i + 2, n + 1):
                delta = (
                    d(path[i], path[j]) + d(path[i + 1], path[j + 1])
                    - d(path[i], path[i + 1]) - d(path[j], path[j + 1])
                )
                if delta < -_IMPROVEMENT_EPSILON:
                    path[i + 1:j + 1] = reversed(path[i + 1:j + 1])
                    result.swaps_performed += 1
                    improved = True
                    break
            if improved:
                break

    new_route = path[1:-1]
    result.new_distance_km = total_route_distance(departure, new_route, return_location, distance_tool)
    result.improved = result.new_distance_km < original - _IMPROVEMENT_EPSILON
    if original > 0:
        result.improvement_percent = (original - result.new_distance_km) / original * 100
    return new_route, result
