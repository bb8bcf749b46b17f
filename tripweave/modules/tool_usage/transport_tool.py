"""
modules/tool_usage/transport_tool.py
--------------------------------------
Transport mode & segment calculator.

Mode is a pure function of distance:
  <= walking_max_distance_km  → walking  (5 km/h, ×1.1 buffer)
  <= driving_max_distance_km  → driving  (60 km/h, ×1.2 buffer)
  otherwise                   → flying   (500 km/h + 3 h airport overhead)

A post-pass (downshift_flights) turns a flight into a drive when the drive
is under 5 h and under 1.5× the flight's door-to-door time.

Every distance lookup goes through the injected DistanceTool / DistanceCache.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

import tripweave.config as config
from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.schemas.itinerary import TransportModeSummary
from tripweave.schemas.route import (
    DestinationCluster,
    RouteSegment,
    TransportConfig,
    TransportMode,
)
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)


# ── Pure functions ─────────────────────────────────────────────────────────────

def determine_transport_mode(
    distance_km: float,
    cfg: Optional[TransportConfig] = None,
) -> TransportMode:
    cfg = cfg or TransportConfig()
    if distance_km <= cfg.walking_max_distance_km:
        return TransportMode.WALKING
    if distance_km <= cfg.driving_max_distance_km:
        return TransportMode.DRIVING
    return TransportMode.FLYING


def estimate_travel_time(
    distance_km: float,
    mode: TransportMode,
    cfg: Optional[TransportConfig] = None,
) -> float:
    """Door-to-door hours for a leg of *distance_km* by *mode*."""
    cfg = cfg or TransportConfig()
    if mode == TransportMode.WALKING:
        return distance_km / cfg.walking_speed_kmh * cfg.walking_time_buffer
    if mode == TransportMode.DRIVING:
        return distance_km / cfg.driving_speed_kmh * cfg.driving_time_buffer
    if mode == TransportMode.FLYING:
        return distance_km / cfg.flying_speed_kmh + cfg.airport_overhead_hours
    raise ValueError(f"ERROR_UNKNOWN_TRANSPORT_MODE: {mode!r}")


def should_downshift(flight_hours: float, driving_hours: float) -> bool:
    """A flight becomes a drive when the drive is short and not much slower."""
    return (
        driving_hours < config.DOWNSHIFT_MAX_DRIVE_HOURS
        and driving_hours < flight_hours * config.DOWNSHIFT_MAX_DRIVE_RATIO
    )


def resolve_leg(
    distance_km: float,
    cfg: Optional[TransportConfig] = None,
) -> tuple[TransportMode, float]:
    """(mode, hours) for one leg, with the flight-to-drive downshift applied."""
    cfg = cfg or TransportConfig()
    mode = determine_transport_mode(distance_km, cfg)
    hours = estimate_travel_time(distance_km, mode, cfg)
    if mode == TransportMode.FLYING:
        driving_hours = estimate_travel_time(distance_km, TransportMode.DRIVING, cfg)
        if should_downshift(hours, driving_hours):
            return TransportMode.DRIVING, driving_hours
    return mode, hours


# ── Route metrics ──────────────────────────────────────────────────────────────

@dataclass
class RouteMetrics:
    segments: list[RouteSegment] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_time_hours: float = 0.0
    transport_modes: set[TransportMode] = field(default_factory=set)


class TransportCalculator:
    """
    Builds RouteSegments between route stops.  A stop is either a Location
    (departure / return point) or a DestinationCluster; both expose
    `representative_location`.
    """

    def __init__(
        self,
        distance_tool: Optional[DistanceTool] = None,
        transport_config: Optional[TransportConfig] = None,
    ) -> None:
        self.distance_tool = distance_tool or DistanceTool()
        self.config = transport_config or TransportConfig()

    def segment(self, origin, target) -> RouteSegment:
        distance_km = self.distance_tool.distance_km(origin, target)
        mode = determine_transport_mode(distance_km, self.config)
        return RouteSegment(
            from_cluster=origin if isinstance(origin, DestinationCluster) else None,
            to_cluster=target if isinstance(target, DestinationCluster) else None,
            distance_km=distance_km,
            transport_mode=mode,
            estimated_time_hours=estimate_travel_time(distance_km, mode, self.config),
        )

    def route_metrics(
        self,
        departure: Location,
        clusters: Sequence[DestinationCluster],
        return_location: Optional[Location] = None,
    ) -> RouteMetrics:
        """
        Legs: departure → first, between clusters, last → return (or departure).
        Total time = travel + stay time of every cluster.
        """
        metrics = RouteMetrics()

        if not clusters:
            if return_location is not None and return_location.id != departure.id:
                self._add(metrics, self.segment(departure, return_location))
            return metrics

        self._add(metrics, self.segment(departure, clusters[0]))
        for here, there in zip(clusters, clusters[1:]):
            self._add(metrics, self.segment(here, there))
        self._add(metrics, self.segment(clusters[-1], return_location or departure))

        metrics.total_time_hours += sum(c.total_stay_hours for c in clusters)
        return metrics

    def downshift_flights(self, segments: list[RouteSegment]) -> list[RouteSegment]:
        """Replace short flights with drives where driving is reasonable."""
        result: list[RouteSegment] = []
        for seg in segments:
            if seg.transport_mode != TransportMode.FLYING:
                result.append(seg)
                continue
            driving_time = estimate_travel_time(seg.distance_km, TransportMode.DRIVING, self.config)
            if should_downshift(seg.estimated_time_hours, driving_time):
                logger.debug(
                    "Downshifting %.0f km flight (%.1f h) to drive (%.1f h)",
                    seg.distance_km, seg.estimated_time_hours, driving_time,
                )
                seg = replace(
                    seg,
                    transport_mode=TransportMode.DRIVING,
                    estimated_time_hours=driving_time,
                )
            result.append(seg)
        return result

    @staticmethod
    def _add(metrics: RouteMetrics, seg: RouteSegment) -> None:
        metrics.segments.append(seg)
        metrics.total_distance_km += seg.distance_km
        metrics.total_time_hours += seg.estimated_time_hours
        metrics.transport_modes.add(seg.transport_mode)


def recompute_totals(segments: list[RouteSegment], clusters: Sequence[DestinationCluster]) -> tuple[float, float]:
    """(distance km, hours) for already-built segments plus cluster stays."""
    distance = sum(s.distance_km for s in segments)
    hours = sum(s.estimated_time_hours for s in segments) + sum(c.total_stay_hours for c in clusters)
    return distance, hours


# ── Feasibility ────────────────────────────────────────────────────────────────

def validate_route_feasibility(
    total_time_hours: float,
    available_time_hours: Optional[float],
    transport_modes: set[TransportMode],
) -> tuple[bool, list[str]]:
    issues: list[str] = []

    if available_time_hours is not None and total_time_hours > available_time_hours:
        issues.append(
            f"Route requires {total_time_hours:.1f} hours but only "
            f"{available_time_hours:.1f} hours available"
        )

    if TransportMode.FLYING in transport_modes and len(transport_modes) > 2:
        issues.append("Route involves multiple transport mode changes including flights")

    return len(issues) == 0, issues


# ── Stats ──────────────────────────────────────────────────────────────────────

def transport_stats(segments: Sequence) -> TransportModeSummary:
    """
    Segment counts and km per mode, plus mode changes along the sequence.
    Accepts RouteSegment or DetailedTransportSegment items.
    """
    stats = TransportModeSummary()
    previous: Optional[TransportMode] = None

    for seg in segments:
        mode = seg.transport_mode
        if mode == TransportMode.WALKING:
            stats.walking_segments += 1
            stats.walking_distance_km += seg.distance_km
        elif mode == TransportMode.DRIVING:
            stats.driving_segments += 1
            stats.driving_distance_km += seg.distance_km
        elif mode == TransportMode.FLYING:
            stats.flying_segments += 1
            stats.flying_distance_km += seg.distance_km

        if previous is not None and previous != mode:
            stats.mode_changes += 1
        previous = mode

    return stats
