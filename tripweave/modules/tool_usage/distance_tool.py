"""
modules/tool_usage/distance_tool.py
-------------------------------------
Great-circle distances (Haversine) with an explicit pairwise cache.

The DistanceCache is constructed by the caller and passed to every consumer;
there is no module-level instance.  A fresh cache (or clear()) is needed
between independent runs, because keys are location ids and a replayed id
with different coordinates would otherwise hit a stale entry.
"""

from __future__ import annotations
import math
import logging
from typing import Callable, Optional

import tripweave.config as config
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = config.EARTH_RADIUS_KM


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.asin(min(1.0, math.sqrt(a)))


def location_distance_km(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def spherical_centroid(
    locations: list[Location],
    centroid_id: Optional[str] = None,
    weights: Optional[list[float]] = None,
) -> Location:
    """
    Centroid via 3D Cartesian averaging, safe across the antimeridian.

    *weights* (one per location, positive sum) turn it into a weighted
    mean on the sphere.  A single location is returned as a copy; it keeps
    its own id unless *centroid_id* is given.
    """
    if not locations:
        raise ValueError("ERROR_EMPTY_CENTROID: cannot compute centroid of zero locations")
    if weights is None:
        weights = [1.0] * len(locations)
    if len(weights) != len(locations) or sum(weights) <= 0:
        raise ValueError("ERROR_CENTROID_WEIGHTS: need one weight per location with a positive sum")
    if len(locations) == 1:
        only = locations[0]
        return Location(centroid_id or only.id, only.latitude, only.longitude, only.name, only.address)

    x = y = z = 0.0
    for loc, w in zip(locations, weights):
        lat = math.radians(loc.latitude)
        lon = math.radians(loc.longitude)
        x += w * math.cos(lat) * math.cos(lon)
        y += w * math.cos(lat) * math.sin(lon)
        z += w * math.sin(lat)
    total = sum(weights)
    x, y, z = x / total, y / total, z / total

    central_lon = math.atan2(y, x)
    central_lat = math.atan2(z, math.sqrt(x * x + y * y))
    return Location(
        id=centroid_id or "centroid",
        latitude=math.degrees(central_lat),
        longitude=math.degrees(central_lon),
        name=f"Center of {len(locations)} locations",
    )


# ---------------------------------------------------------------------------
# DistanceCache
# ---------------------------------------------------------------------------


class DistanceCache:
    """In-memory km cache keyed by an order-independent pair of location ids."""

    def __init__(self) -> None:
        self._cache: dict[tuple[str, str], float] = {}
        self.hits: int = 0
        self.misses: int = 0

    @staticmethod
    def key(a: Location, b: Location) -> tuple[str, str]:
        return (a.id, b.id) if a.id <= b.id else (b.id, a.id)

    def get(self, a: Location, b: Location) -> Optional[float]:
        return self._cache.get(self.key(a, b))

    def set(self, a: Location, b: Location, distance_km: float) -> None:
        self._cache[self.key(a, b)] = distance_km

    def clear(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    def stats(self) -> dict:
        return {
            "size": len(self._cache),
            "hits": self.hits,
            "misses": self.misses,
            "estimated_memory_kb": round(len(self._cache) * 100 / 1024, 2),
        }

    def get_or_compute(
        self,
        a: Location,
        b: Location,
        calculator: Callable[[Location, Location], float] = location_distance_km,
    ) -> float:
        cached = self.get(a, b)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        distance = calculator(a, b)
        self.set(a, b, distance)
        return distance


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Distance lookups between route stops (Locations or clusters) through a
    shared DistanceCache.  No external HTTP calls are made.
    """

    def __init__(self, cache: Optional[DistanceCache] = None) -> None:
        self.cache = cache if cache is not None else DistanceCache()

    def distance_km(self, a, b) -> float:
        """Distance between two stops; clusters resolve to their centroid."""
        loc_a = a.representative_location
        loc_b = b.representative_location
        if loc_a.id == loc_b.id:
            # same key for two points would poison the cache
            return location_distance_km(loc_a, loc_b)
        return self.cache.get_or_compute(loc_a, loc_b)

    def distance_matrix(self, stops: list) -> list[list[float]]:
        """Full n x n distance matrix [km]."""
        return [[self.distance_km(a, b) for b in stops] for a in stops]

    def calculate(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Uncached Haversine distance in km."""
        return haversine_km(lat1, lon1, lat2, lon2)
