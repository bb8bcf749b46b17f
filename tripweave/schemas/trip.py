"""
schemas/trip.py
---------------
Input contract for the optimization core: destinations, raw traveler
ratings, departure/return points and the trip time window.

The persistence/auth layer builds a TripInput; validation happens in
modules/validation/input_validator.py before any optimization stage runs.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Location:
    """
    A point on the globe.

    Synthetic points (cluster centroids, day centers, lunch spots) carry ids
    derived from their owner, e.g. "cluster-2-center", so distinct points
    never share an id inside one run.
    """
    id: str
    latitude: float
    longitude: float
    name: str = ""
    address: Optional[str] = None

    @property
    def representative_location(self) -> Location:
        return self


@dataclass(frozen=True)
class Destination:
    """A candidate place the group may visit."""
    id: str
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None

    @property
    def location(self) -> Location:
        return Location(
            id=self.id,
            latitude=self.latitude,
            longitude=self.longitude,
            name=self.name,
            address=self.address,
        )


@dataclass
class RawPreference:
    """One traveler's 1–5 rating of one destination."""
    traveler_key: str                        # user id or guest-session id
    destination_id: str
    score: int
    preferred_duration_hours: Optional[float] = None
    traveler_name: str = ""
    traveler_color: str = ""


@dataclass
class TripWindow:
    """
    Trip time constraints.

    Fixed mode: start_date and end_date set, auto_calculate off.
    Auto mode:  anything else — the trip length is derived from the route.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    auto_calculate: bool = False
    daily_hours: Optional[float] = None      # None → config.DAILY_HOURS


@dataclass
class TripInput:
    """Validated, in-memory snapshot handed to run_pipeline()."""
    trip_id: str = ""
    destinations: list[Destination] = field(default_factory=list)
    preferences: list[RawPreference] = field(default_factory=list)
    departure: Optional[Location] = None
    return_location: Optional[Location] = None
    window: TripWindow = field(default_factory=TripWindow)
    # Explicit group membership.  Empty → travelers are inferred from preferences.
    traveler_keys: list[str] = field(default_factory=list)

    def all_traveler_keys(self) -> list[str]:
        """Member keys in first-seen order (explicit list first)."""
        seen: dict[str, None] = dict.fromkeys(self.traveler_keys)
        for pref in self.preferences:
            if pref.traveler_key:
                seen.setdefault(pref.traveler_key, None)
        return list(seen)
