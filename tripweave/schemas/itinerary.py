"""
schemas/itinerary.py
--------------------
Dataclass definitions for the linear (not yet day-split) itinerary that
expands an optimized cluster route into individual destination visits and
transport legs.

All durations are in hours; all instants are naive datetimes in the trip's
local time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import tripweave.config as config
from tripweave.schemas.route import TransportMode
from tripweave.schemas.trip import Location


@dataclass
class RouteGenerationConfig:
    """Knobs for expanding a route into visits."""
    start_hour: int = config.DAY_START_HOUR
    daily_hours: float = config.DAILY_HOURS
    min_destination_hours: float = config.MIN_DESTINATION_HOURS
    max_destination_hours: float = config.MAX_DESTINATION_HOURS
    default_destination_hours: float = config.DEFAULT_DESTINATION_HOURS


@dataclass
class TimeAllocation:
    allocated_hours: float
    contributing_travelers: list[str] = field(default_factory=list)
    is_default: bool = False


@dataclass
class WishfulTraveler:
    """A traveler who rated a destination above their own average."""
    traveler_key: str
    traveler_name: str = ""
    traveler_color: str = ""
    original_rating: int = 0
    standardized_score: float = 0.0


@dataclass
class DestinationVisit:
    destination_id: str
    destination_name: str
    location: Location
    arrival_time: datetime
    departure_time: datetime
    allocated_hours: float
    wishful_travelers: list[WishfulTraveler] = field(default_factory=list)
    is_cluster_entry: bool = False
    cluster_id: str = ""
    cluster_name: str = ""
    visit_order: int = 0


@dataclass
class DetailedTransportSegment:
    segment_id: str
    from_location: Location
    from_name: str
    to_location: Location
    to_name: str
    transport_mode: TransportMode
    distance_km: float
    estimated_time_hours: float
    departure_time: datetime
    arrival_time: datetime
    warnings: list[str] = field(default_factory=list)

    @property
    def route_path(self) -> list[Location]:
        """Straight line; no routing engine is consulted."""
        return [self.from_location, self.to_location]


@dataclass
class ItineraryIssue:
    code: str
    message: str
    affected_segment: Optional[str] = None
    affected_destination: Optional[str] = None


@dataclass
class ItineraryValidationReport:
    is_valid: bool = True
    errors: list[ItineraryIssue] = field(default_factory=list)
    warnings: list[ItineraryIssue] = field(default_factory=list)


@dataclass
class TransportModeSummary:
    walking_segments: int = 0
    walking_distance_km: float = 0.0
    driving_segments: int = 0
    driving_distance_km: float = 0.0
    flying_segments: int = 0
    flying_distance_km: float = 0.0
    mode_changes: int = 0


@dataclass
class TravelerCoverage:
    traveler_key: str
    traveler_name: str = ""
    visited_wishlist_count: int = 0
    total_wishlist_count: int = 0
    satisfaction_percentage: float = 0.0


@dataclass
class ItinerarySummary:
    total_destinations: int = 0
    total_clusters: int = 0
    total_days: int = 0
    total_distance_km: float = 0.0
    total_travel_time_hours: float = 0.0
    total_visit_time_hours: float = 0.0
    transport_modes: TransportModeSummary = field(default_factory=TransportModeSummary)
    traveler_coverage: list[TravelerCoverage] = field(default_factory=list)


@dataclass
class LinearItinerary:
    """
    Ordered visits plus legs.  segments[i] arrives at visits[i]; when the
    trip ends away from the last visit a trailing segment returns home.
    """
    trip_id: str
    start_time: datetime
    end_time: datetime
    departure_location: Location
    return_location: Optional[Location]
    visits: list[DestinationVisit] = field(default_factory=list)
    segments: list[DetailedTransportSegment] = field(default_factory=list)
    summary: ItinerarySummary = field(default_factory=ItinerarySummary)
    validation: ItineraryValidationReport = field(default_factory=ItineraryValidationReport)

    def segment_before(self, index: int) -> Optional[DetailedTransportSegment]:
        """Leg arriving at visits[index], if any."""
        if 0 <= index < len(self.visits) and index < len(self.segments):
            seg = self.segments[index]
            if seg.to_location.id == self.visits[index].location.id:
                return seg
        return None

    @property
    def return_segment(self) -> Optional[DetailedTransportSegment]:
        if len(self.segments) > len(self.visits):
            return self.segments[-1]
        return None
