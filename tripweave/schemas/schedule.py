"""
schemas/schedule.py
-------------------
Day-by-day schedule structures: DaySchedule and everything hanging off it
(scheduled visits/legs, meals, lodging suggestions), plus the trip-wide
MultiDayItinerary.

Lifecycle of a DaySchedule:
  created empty by the day splitter → filled → finalized (summary and
  validation computed).  The meal and accommodation passes return updated
  copies; only the merge pass builds a new day from two finalized ones.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import tripweave.config as config
from tripweave.schemas.itinerary import DestinationVisit, DetailedTransportSegment
from tripweave.schemas.trip import Location


@dataclass
class DailyScheduleConfig:
    start_hour: int = config.DAY_START_HOUR
    end_hour: int = config.DAY_END_HOUR
    max_daily_hours: float = config.DAILY_HOURS
    lunch_start_hour: int = config.LUNCH_START_HOUR
    lunch_duration_hours: float = config.LUNCH_DURATION_HOURS
    dinner_duration_hours: float = config.DINNER_DURATION_HOURS
    buffer_minutes: int = config.BUFFER_MINUTES
    morning_energy_hours: float = config.MORNING_ENERGY_HOURS
    afternoon_energy_hours: float = config.AFTERNOON_ENERGY_HOURS
    evening_energy_hours: float = config.EVENING_ENERGY_HOURS
    long_transport_hours: float = config.LONG_TRANSPORT_HOURS
    merge_utilization_pct: float = config.MERGE_UTILIZATION_PCT
    accommodation_quality: str = "standard"  # budget | standard | premium

    @property
    def buffer_hours(self) -> float:
        return self.buffer_minutes / 60.0


# ── Scheduled items ────────────────────────────────────────────────────────────

@dataclass
class ScheduledDestination:
    visit: DestinationVisit
    scheduled_arrival: datetime
    scheduled_departure: datetime
    energy_period: str = "morning"           # morning | afternoon | evening
    is_rushed: bool = False                  # < 1 h
    is_extended: bool = False                # > 4 h


@dataclass
class ScheduledTransport:
    segment: DetailedTransportSegment
    scheduled_departure: datetime
    scheduled_arrival: datetime
    crosses_lunch: bool = False
    is_day_transition: bool = False


@dataclass
class MealBreak:
    type: str                                # lunch | dinner
    start_time: datetime
    end_time: datetime
    location: Location
    nearby_destination: str = ""

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600.0


# ── Accommodation ──────────────────────────────────────────────────────────────

@dataclass
class CostBand:
    min: float
    max: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2.0


@dataclass
class AccommodationCostEstimate:
    budget: CostBand
    standard: CostBand
    premium: CostBand
    location_multiplier: float = 1.0
    factors: list[str] = field(default_factory=list)

    def band(self, tier: str) -> CostBand:
        return {"budget": self.budget, "standard": self.standard, "premium": self.premium}[tier]


@dataclass
class NextDayAccess:
    destination_name: str
    distance_km: float
    travel_time_hours: float


@dataclass
class AccommodationSuggestion:
    location: Location
    search_radius_km: float
    estimated_cost_usd: AccommodationCostEstimate
    next_day_access: Optional[NextDayAccess] = None
    reasoning: str = ""


# ── Day summary / validation ───────────────────────────────────────────────────

@dataclass
class DaySummary:
    total_destinations: int = 0
    total_active_hours: float = 0.0
    total_travel_hours: float = 0.0
    total_rest_hours: float = 0.0
    walking_distance_km: float = 0.0
    total_distance_km: float = 0.0
    utilization_rate: float = 0.0            # % of max_daily_hours
    pace_rating: str = "relaxed"             # relaxed | moderate | packed


@dataclass
class DayIssue:
    code: str
    message: str
    severity: str = "medium"                 # low | medium | high (warnings only)


@dataclass
class DayValidation:
    is_valid: bool = True
    warnings: list[DayIssue] = field(default_factory=list)
    errors: list[DayIssue] = field(default_factory=list)


@dataclass
class DaySchedule:
    day_number: int
    date: date
    start_time: datetime
    end_time: datetime
    destinations: list[ScheduledDestination] = field(default_factory=list)
    transport_segments: list[ScheduledTransport] = field(default_factory=list)
    meals: list[MealBreak] = field(default_factory=list)
    accommodation: Optional[AccommodationSuggestion] = None
    summary: DaySummary = field(default_factory=DaySummary)
    validation: DayValidation = field(default_factory=DayValidation)
    finalized: bool = False


# ── Trip-wide ──────────────────────────────────────────────────────────────────

@dataclass
class AccommodationPlan:
    night_number: int
    date: date
    location: Location
    estimated_cost: AccommodationCostEstimate
    nearby_attractions: list[str] = field(default_factory=list)
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None


@dataclass
class TierCostTotal:
    total: float = 0.0
    per_night: float = 0.0


@dataclass
class TripStatistics:
    total_destinations: int = 0
    average_destinations_per_day: float = 0.0
    total_distance_km: float = 0.0
    distance_by_mode: dict[str, float] = field(
        default_factory=lambda: {"walking": 0.0, "driving": 0.0, "flying": 0.0}
    )
    total_active_hours: float = 0.0
    total_travel_hours: float = 0.0
    total_rest_hours: float = 0.0
    daily_pace_variance: float = 0.0
    estimated_carbon_kg: float = 0.0
    estimated_accommodation_cost: dict[str, TierCostTotal] = field(default_factory=dict)


@dataclass
class ItineraryValidation:
    is_valid: bool = True
    day_validations: dict[int, DayValidation] = field(default_factory=dict)
    overall_warnings: list[str] = field(default_factory=list)
    overall_errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class MultiDayItinerary:
    trip_id: str
    start_date: date
    end_date: date
    day_schedules: list[DaySchedule] = field(default_factory=list)
    accommodations: list[AccommodationPlan] = field(default_factory=list)
    statistics: TripStatistics = field(default_factory=TripStatistics)
    validation: ItineraryValidation = field(default_factory=ItineraryValidation)

    @property
    def total_days(self) -> int:
        return len(self.day_schedules)
