"""
modules/tool_usage/accommodation_tool.py
------------------------------------------
Overnight lodging suggestions for a day-by-day schedule.

No hotel inventory is queried.  For every day except the last, the tool
proposes a search area and a nightly price band:

  point = 0.7 × (centroid of the day's visits) + 0.3 × (next day's first visit)
  cost  = round(base[tier] × hub multiplier)

Both means are taken on the sphere (spherical_centroid), so a day that
straddles the antimeridian is lodged beside it rather than at longitude 0.

Hub multiplier (distance to the nearest major transport hub):
  < 50 km  → ×1.8
  < 100 km → ×1.4
  > 200 km → ×0.7
  otherwise ×1.0
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

import tripweave.config as config
from tripweave.modules.tool_usage.distance_tool import DistanceTool, spherical_centroid
from tripweave.schemas.schedule import (
    AccommodationCostEstimate,
    AccommodationSuggestion,
    CostBand,
    DailyScheduleConfig,
    DaySchedule,
    NextDayAccess,
)
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)


# ── Hub table ──────────────────────────────────────────────────────────────────

MAJOR_HUBS: list[Location] = [
    Location("hub-NRT", 35.7720, 140.3929, "Narita Airport"),
    Location("hub-KIX", 34.4347, 135.2440, "Kansai Airport"),
    Location("hub-LHR", 51.4700, -0.4543, "London Heathrow"),
    Location("hub-CDG", 49.0097, 2.5479, "Paris Charles de Gaulle"),
    Location("hub-JFK", 40.6413, -73.7781, "New York JFK"),
    Location("hub-LAX", 33.9416, -118.4085, "Los Angeles LAX"),
]

# tier → (min factor, max factor) applied to the estimated nightly cost
_BAND_FACTORS: dict[str, tuple[float, float]] = {
    "budget":   (0.7, 1.2),
    "standard": (0.8, 1.5),
    "premium":  (1.2, 2.5),
}

_DAY_CENTER_WEIGHT: float = 0.7
_NEXT_DAY_WEIGHT:   float = 0.3


def _hub_multiplier(distance_km: float) -> float:
    if distance_km < 50:
        return 1.8
    if distance_km < 100:
        return 1.4
    if distance_km > 200:
        return 0.7
    return 1.0


class AccommodationTool:
    """Suggests where the group should stay each night and what it may cost."""

    def __init__(
        self,
        distance_tool: Optional[DistanceTool] = None,
        schedule_config: Optional[DailyScheduleConfig] = None,
    ) -> None:
        self.distance_tool = distance_tool or DistanceTool()
        self.config = schedule_config or DailyScheduleConfig()

    # ── Hubs & cost ───────────────────────────────────────────────────────

    def find_nearest_hub(self, location: Location) -> tuple[Location, float]:
        best_hub = MAJOR_HUBS[0]
        best_km = float("inf")
        for hub in MAJOR_HUBS:
            km = self.distance_tool.distance_km(location, hub)
            if km < best_km:
                best_hub, best_km = hub, km
        return best_hub, best_km

    def estimate_cost(self, location: Location) -> AccommodationCostEstimate:
        tier = self.config.accommodation_quality
        if tier not in config.ACCOMMODATION_BASE_COST_USD:
            raise ValueError(f"ERROR_UNKNOWN_ACCOMMODATION_TIER: {tier!r}")

        hub, hub_km = self.find_nearest_hub(location)
        multiplier = _hub_multiplier(hub_km)
        cost = round(config.ACCOMMODATION_BASE_COST_USD[tier] * multiplier)

        factors: list[str] = []
        if multiplier > 1.0:
            factors.append(f"Close to {hub.name} ({hub_km:.0f} km)")
        elif multiplier < 1.0:
            factors.append("Away from major transport hubs")

        bands = {
            name: CostBand(min=round(cost * lo), max=round(cost * hi))
            for name, (lo, hi) in _BAND_FACTORS.items()
        }
        return AccommodationCostEstimate(
            budget=bands["budget"],
            standard=bands["standard"],
            premium=bands["premium"],
            location_multiplier=multiplier,
            factors=factors,
        )

    # ── Suggestions ───────────────────────────────────────────────────────

    def suggest(self, day: DaySchedule, next_day: Optional[DaySchedule]) -> Optional[AccommodationSuggestion]:
        """Lodging area for the night after *day*; None when the day is empty."""
        if not day.destinations:
            return None

        center = spherical_centroid([sd.visit.location for sd in day.destinations])

        next_first = next_day.destinations[0] if next_day and next_day.destinations else None
        if next_first is not None:
            center = spherical_centroid(
                [center, next_first.visit.location],
                weights=[_DAY_CENTER_WEIGHT, _NEXT_DAY_WEIGHT],
            )
            reasoning = "Between today's destinations and tomorrow's first stop"
        else:
            reasoning = "Near day's activities"

        point = Location(
            id=f"day-{day.day_number}-accommodation",
            latitude=center.latitude,
            longitude=center.longitude,
            name=f"Accommodation area, day {day.day_number}",
        )

        access: Optional[NextDayAccess] = None
        if next_first is not None:
            km = self.distance_tool.distance_km(point, next_first.visit.location)
            access = NextDayAccess(
                destination_name=next_first.visit.destination_name,
                distance_km=km,
                travel_time_hours=km / config.NEXT_DAY_ACCESS_SPEED_KMH,
            )

        return AccommodationSuggestion(
            location=point,
            search_radius_km=config.ACCOMMODATION_SEARCH_RADIUS_KM,
            estimated_cost_usd=self.estimate_cost(point),
            next_day_access=access,
            reasoning=reasoning,
        )

    def suggest_all(self, days: list[DaySchedule]) -> list[DaySchedule]:
        """
        Copies of *days* with `accommodation` set on every day but the last.
        Single-day trips get no suggestion.
        """
        if len(days) <= 1:
            return list(days)

        result: list[DaySchedule] = []
        for i, day in enumerate(days):
            if i == len(days) - 1:
                result.append(day)
                continue
            suggestion = self.suggest(day, days[i + 1])
            result.append(replace(day, accommodation=suggestion))
        logger.debug("Accommodation suggested for %d night(s)", len(days) - 1)
        return result


def calculate_total_accommodation_cost(days: list[DaySchedule]) -> float:
    """Sum of the standard-band midpoint over every suggested night."""
    return sum(
        day.accommodation.estimated_cost_usd.standard.midpoint
        for day in days
        if day.accommodation is not None
    )
