"""
modules/planning/itinerary_builder.py
---------------------------------------
Expands an optimized cluster route into a linear itinerary: individual
destination visits with arrival/departure instants and one transport leg
before each visit.

  departure → entry(c1) → … members of c1 … → entry(c2) → … → return

Visit length per destination = mean preferred duration of the travelers who
rated it, bounded to [0.5, 8] h (2 h when nobody gave one).  Day splitting
happens later; here the clock simply runs forward from the first morning.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from tripweave.modules.planning.cluster_internal import optimize_cluster_internally
from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.modules.tool_usage.transport_tool import resolve_leg, transport_stats
from tripweave.schemas.itinerary import (
    DestinationVisit,
    DetailedTransportSegment,
    ItineraryIssue,
    ItinerarySummary,
    ItineraryValidationReport,
    LinearItinerary,
    RouteGenerationConfig,
    TimeAllocation,
    TravelerCoverage,
    WishfulTraveler,
)
from tripweave.schemas.preferences import StandardizedPreference
from tripweave.schemas.route import RouteSolution, TimeConstraints, TransportConfig, TransportMode
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)

_SHORT_FLIGHT_KM:  float = 100.0
_LONG_WALK_KM:     float = 5.0
_LONG_DAY_HOURS:   float = 12.0


# ── Per-destination helpers ────────────────────────────────────────────────────

def allocate_destination_time(
    destination_id: str,
    preferences: Sequence[StandardizedPreference],
    cfg: Optional[RouteGenerationConfig] = None,
) -> TimeAllocation:
    cfg = cfg or RouteGenerationConfig()
    relevant = [p for p in preferences if p.destination_id == destination_id]
    if not relevant:
        return TimeAllocation(allocated_hours=cfg.default_destination_hours, is_default=True)

    mean = sum(p.preferred_duration_hours for p in relevant) / len(relevant)
    bounded = max(cfg.min_destination_hours, min(cfg.max_destination_hours, mean))
    return TimeAllocation(
        allocated_hours=bounded,
        contributing_travelers=[p.traveler_key for p in relevant],
    )


def find_wishful_travelers(
    destination_id: str,
    preferences: Sequence[StandardizedPreference],
) -> list[WishfulTraveler]:
    """Travelers who rated the destination above their own average."""
    return [
        WishfulTraveler(
            traveler_key=p.traveler_key,
            traveler_name=p.traveler_name,
            traveler_color=p.traveler_color,
            original_rating=p.original_score,
            standardized_score=p.standardized_score,
        )
        for p in preferences
        if p.destination_id == destination_id and p.standardized_score > 0
    ]


# ── Builder ────────────────────────────────────────────────────────────────────

class ItineraryBuilder:
    """Turns a RouteSolution into a LinearItinerary."""

    def __init__(
        self,
        distance_tool: Optional[DistanceTool] = None,
        transport_config: Optional[TransportConfig] = None,
        generation_config: Optional[RouteGenerationConfig] = None,
    ) -> None:
        self.distance_tool = distance_tool or DistanceTool()
        self.transport_config = transport_config or TransportConfig()
        self.config = generation_config or RouteGenerationConfig()

    def build(
        self,
        trip_id: str,
        solution: RouteSolution,
        preferences: Sequence[StandardizedPreference],
        departure: Location,
        return_location: Optional[Location],
        start_date: date,
        time_constraints: Optional[TimeConstraints] = None,
    ) -> LinearItinerary:
        start = datetime.combine(start_date, time(self.config.start_hour))
        itinerary = LinearItinerary(
            trip_id=trip_id,
            start_time=start,
            end_time=start,
            departure_location=departure,
            return_location=return_location,
        )

        clock = start
        here, here_name = departure, departure.name or "Departure"

        for cluster in solution.clusters:
            cluster_route = optimize_cluster_internally(
                cluster, here, self.distance_tool, self.transport_config
            )
            for idx, dest in enumerate(cluster_route.ordered_destinations):
                leg = self._segment(len(itinerary.segments) + 1, here, here_name, dest.location, dest.name, clock)
                itinerary.segments.append(leg)

                allocation = allocate_destination_time(dest.id, preferences, self.config)
                arrival = leg.arrival_time
                visit = DestinationVisit(
                    destination_id=dest.id,
                    destination_name=dest.name,
                    location=dest.location,
                    arrival_time=arrival,
                    departure_time=arrival + timedelta(hours=allocation.allocated_hours),
                    allocated_hours=allocation.allocated_hours,
                    wishful_travelers=find_wishful_travelers(dest.id, preferences),
                    is_cluster_entry=idx == 0,
                    cluster_id=cluster.id,
                    cluster_name=cluster.name,
                    visit_order=len(itinerary.visits) + 1,
                )
                itinerary.visits.append(visit)
                clock = visit.departure_time
                here, here_name = dest.location, dest.name

        home = return_location or departure
        if here.id != home.id:
            leg = self._segment(
                len(itinerary.segments) + 1, here, here_name, home, home.name or "Return", clock
            )
            itinerary.segments.append(leg)
            clock = leg.arrival_time

        itinerary.end_time = clock
        itinerary.summary = summarize_itinerary(itinerary, solution, preferences)
        itinerary.validation = validate_linear_itinerary(itinerary, time_constraints)
        logger.info(
            "Linear itinerary: %d visit(s), %d leg(s), %s → %s",
            len(itinerary.visits), len(itinerary.segments),
            itinerary.start_time.isoformat(), itinerary.end_time.isoformat(),
        )
        return itinerary

    def _segment(
        self,
        number: int,
        origin: Location,
        origin_name: str,
        target: Location,
        target_name: str,
        departs: datetime,
    ) -> DetailedTransportSegment:
        km = self.distance_tool.distance_km(origin, target)
        mode, hours = resolve_leg(km, self.transport_config)

        warnings: list[str] = []
        if mode == TransportMode.FLYING and km < _SHORT_FLIGHT_KM:
            warnings.append("SHORT_FLIGHT")
        if mode == TransportMode.WALKING and km > _LONG_WALK_KM:
            warnings.append("LONG_WALK")

        return DetailedTransportSegment(
            segment_id=f"seg-{number}",
            from_location=origin,
            from_name=origin_name,
            to_location=target,
            to_name=target_name,
            transport_mode=mode,
            distance_km=km,
            estimated_time_hours=hours,
            departure_time=departs,
            arrival_time=departs + timedelta(hours=hours),
            warnings=warnings,
        )


def generate_linear_itinerary(
    trip_id: str,
    solution: RouteSolution,
    preferences: Sequence[StandardizedPreference],
    departure: Location,
    return_location: Optional[Location],
    start_date: date,
    time_constraints: Optional[TimeConstraints] = None,
    *,
    distance_tool: Optional[DistanceTool] = None,
    transport_config: Optional[TransportConfig] = None,
    generation_config: Optional[RouteGenerationConfig] = None,
) -> LinearItinerary:
    builder = ItineraryBuilder(distance_tool, transport_config, generation_config)
    return builder.build(
        trip_id, solution, preferences, departure, return_location, start_date, time_constraints
    )


# ── Summary & validation ───────────────────────────────────────────────────────

def summarize_itinerary(
    itinerary: LinearItinerary,
    solution: RouteSolution,
    preferences: Sequence[StandardizedPreference],
) -> ItinerarySummary:
    visited = {v.destination_id for v in itinerary.visits}

    wishlists: dict[str, set[str]] = defaultdict(set)
    names: dict[str, str] = {}
    for p in preferences:
        names.setdefault(p.traveler_key, p.traveler_name or p.traveler_key)
        wishlists.setdefault(p.traveler_key, set())
        if p.standardized_score > 0:
            wishlists[p.traveler_key].add(p.destination_id)

    coverage = []
    for key, wished in wishlists.items():
        hit = len(wished & visited)
        coverage.append(
            TravelerCoverage(
                traveler_key=key,
                traveler_name=names[key],
                visited_wishlist_count=hit,
                total_wishlist_count=len(wished),
                satisfaction_percentage=hit / len(wished) * 100 if wished else 0.0,
            )
        )

    return ItinerarySummary(
        total_destinations=len(itinerary.visits),
        total_clusters=len(solution.clusters),
        total_days=(itinerary.end_time.date() - itinerary.start_time.date()).days + 1,
        total_distance_km=sum(s.distance_km for s in itinerary.segments),
        total_travel_time_hours=sum(s.estimated_time_hours for s in itinerary.segments),
        total_visit_time_hours=sum(v.allocated_hours for v in itinerary.visits),
        transport_modes=transport_stats(itinerary.segments),
        traveler_coverage=coverage,
    )


def validate_linear_itinerary(
    itinerary: LinearItinerary,
    time_constraints: Optional[TimeConstraints] = None,
) -> ItineraryValidationReport:
    report = ItineraryValidationReport()

    # ── Chronology ─────────────────────────────────────────────────────────
    for seg in itinerary.segments:
        if seg.arrival_time < seg.departure_time:
            report.errors.append(ItineraryIssue(
                code="TIME_REVERSAL",
                message=f"Segment {seg.segment_id} arrives before it departs",
                affected_segment=seg.segment_id,
            ))
    previous_end: Optional[datetime] = None
    for visit in itinerary.visits:
        if visit.departure_time < visit.arrival_time:
            report.errors.append(ItineraryIssue(
                code="NEGATIVE_VISIT_TIME",
                message=f"Visit to {visit.destination_name} ends before it starts",
                affected_destination=visit.destination_id,
            ))
        if previous_end is not None and visit.arrival_time < previous_end:
            report.errors.append(ItineraryIssue(
                code="TIME_REVERSAL",
                message=f"Arrival at {visit.destination_name} precedes the previous departure",
                affected_destination=visit.destination_id,
            ))
        previous_end = visit.departure_time

    # ── Trip window ────────────────────────────────────────────────────────
    if time_constraints is not None and time_constraints.is_fixed and time_constraints.end_date:
        window_end = datetime.combine(time_constraints.end_date, time(23, 59))
        if itinerary.end_time > window_end:
            report.errors.append(ItineraryIssue(
                code="EXCEEDS_TIME_WINDOW",
                message=(
                    f"Itinerary ends {itinerary.end_time:%Y-%m-%d %H:%M}, after the trip "
                    f"end date {time_constraints.end_date.isoformat()}"
                ),
            ))

    # ── Duplicates ─────────────────────────────────────────────────────────
    seen: set[str] = set()
    for visit in itinerary.visits:
        if visit.destination_id in seen:
            report.errors.append(ItineraryIssue(
                code="DUPLICATE_DESTINATION",
                message=f"{visit.destination_name} is visited more than once",
                affected_destination=visit.destination_id,
            ))
        seen.add(visit.destination_id)

    # ── Long calendar days ─────────────────────────────────────────────────
    per_day: dict[date, float] = defaultdict(float)
    for visit in itinerary.visits:
        per_day[visit.arrival_time.date()] += visit.allocated_hours
    for seg in itinerary.segments:
        per_day[seg.departure_time.date()] += seg.estimated_time_hours
    for day, hours in sorted(per_day.items()):
        if hours > _LONG_DAY_HOURS:
            report.warnings.append(ItineraryIssue(
                code="LONG_DAY",
                message=f"{day.isoformat()} has {hours:.1f} hours of activity and travel",
            ))

    report.is_valid = not report.errors
    return report
