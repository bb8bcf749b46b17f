import os
import random
from datetime import date, datetime, timedelta

import pytest

# keep test runs from writing JSONL event files into the repo
os.environ.setdefault("TRIPWEAVE_STRUCTURED_LOGS", "false")

from tripweave.modules.preprocessing.clustering import cluster_destinations  # noqa: E402
from tripweave.modules.preprocessing.normalizer import normalize_preferences  # noqa: E402
from tripweave.modules.tool_usage.distance_tool import DistanceCache, DistanceTool  # noqa: E402
from tripweave.schemas.itinerary import DestinationVisit, DetailedTransportSegment  # noqa: E402
from tripweave.schemas.route import TransportMode  # noqa: E402
from tripweave.schemas.trip import (  # noqa: E402
    Destination,
    Location,
    RawPreference,
    TripInput,
    TripWindow,
)


HOME = Location("home", 48.8566, 2.3522, "Hotel de Ville")

# Paris group (a few km apart) and a second group ~80 km north
PARIS_GROUP = [
    Destination("louvre", "Louvre", 48.8606, 2.3376),
    Destination("orsay", "Musee d'Orsay", 48.8600, 2.3266),
    Destination("eiffel", "Eiffel Tower", 48.8584, 2.2945),
]
NORTH_GROUP = [
    Destination("compiegne", "Chateau de Compiegne", 49.5700, 2.3522),
    Destination("pierrefonds", "Chateau de Pierrefonds", 49.5800, 2.3700),
]


def make_preferences(destinations, travelers, scores, duration=2.0):
    """scores: {traveler: [score per destination]}"""
    prefs = []
    for traveler in travelers:
        for dest, score in zip(destinations, scores[traveler]):
            prefs.append(RawPreference(traveler, dest.id, score, duration, traveler_name=traveler.title()))
    return prefs


@pytest.fixture
def distance_tool():
    return DistanceTool(DistanceCache())


@pytest.fixture
def two_group_trip():
    destinations = PARIS_GROUP + NORTH_GROUP
    travelers = ["ana", "ben", "caro"]
    scores = {
        "ana":  [5, 4, 3, 2, 1],
        "ben":  [1, 2, 3, 5, 4],
        "caro": [3, 5, 1, 4, 2],
    }
    return TripInput(
        trip_id="trip-two-groups",
        destinations=destinations,
        preferences=make_preferences(destinations, travelers, scores),
        departure=HOME,
        window=TripWindow(start_date=date(2025, 6, 2), end_date=date(2025, 6, 3)),
        traveler_keys=travelers,
    )


@pytest.fixture
def two_group_clusters(two_group_trip, distance_tool):
    normalized = normalize_preferences(two_group_trip.preferences)
    clustering = cluster_destinations(
        two_group_trip.destinations, normalized.standardized_preferences, distance_tool=distance_tool
    )
    return clustering.clusters, normalized.standardized_preferences


@pytest.fixture
def rng():
    return random.Random(42)


# ── Schedule builders ────────────────────────────────────────────────────────

DAY = date(2025, 6, 2)


def make_visit(dest_id, hours, lat=48.86, lon=2.34, order=1):
    t = datetime.combine(DAY, datetime.min.time())
    return DestinationVisit(
        destination_id=dest_id,
        destination_name=dest_id.title(),
        location=Location(dest_id, lat, lon, dest_id.title()),
        arrival_time=t,
        departure_time=t + timedelta(hours=hours),
        allocated_hours=hours,
        visit_order=order,
    )


def make_segment(seg_id, origin, target, hours, km=1.0, mode=TransportMode.WALKING):
    t = datetime.combine(DAY, datetime.min.time())
    return DetailedTransportSegment(
        segment_id=seg_id,
        from_location=origin,
        from_name=origin.name,
        to_location=target,
        to_name=target.name,
        transport_mode=mode,
        distance_km=km,
        estimated_time_hours=hours,
        departure_time=t,
        arrival_time=t + timedelta(hours=hours),
    )
