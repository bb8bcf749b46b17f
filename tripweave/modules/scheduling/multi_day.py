"""
modules/scheduling/multi_day.py
---------------------------------
Assembles the day-by-day itinerary:

  split → merge light days → lunch → dinner → accommodation
        → nightly AccommodationPlan → TripStatistics → ItineraryValidation
"""

from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

import tripweave.config as config
from tripweave.modules.scheduling.day_splitter import merge_underutilized_days, split_into_days
from tripweave.modules.scheduling.meal_scheduler import (
    add_dinner_if_needed,
    insert_lunch_break,
    validate_meal_schedule,
)
from tripweave.modules.tool_usage.accommodation_tool import AccommodationTool
from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.schemas.itinerary import LinearItinerary
from tripweave.schemas.schedule import (
    AccommodationPlan,
    DailyScheduleConfig,
    DaySchedule,
    ItineraryValidation,
    MultiDayItinerary,
    TierCostTotal,
    TripStatistics,
)

logger = logging.getLogger(__name__)

_PACKED_STREAK_DAYS: int = 3
_REST_DAY_TRIP_LENGTH: int = 5


def build_multi_day_itinerary(
    itinerary: LinearItinerary,
    start_date: date,
    cfg: Optional[DailyScheduleConfig] = None,
    distance_tool: Optional[DistanceTool] = None,
    merge_days: bool = True,
) -> MultiDayItinerary:
    cfg = cfg or DailyScheduleConfig()

    days = split_into_days(itinerary, start_date, cfg)
    if merge_days:
        days = merge_underutilized_days(days, cfg)
    days = [add_dinner_if_needed(insert_lunch_break(d, cfg), cfg) for d in days]
    days = AccommodationTool(distance_tool, cfg).suggest_all(days)

    result = MultiDayItinerary(
        trip_id=itinerary.trip_id,
        start_date=days[0].date if days else start_date,
        end_date=days[-1].date if days else start_date,
        day_schedules=days,
        accommodations=plan_accommodations(days),
    )
    result.statistics = calculate_trip_statistics(days)
    result.validation = validate_itinerary(days, cfg)
    logger.info(
        "Multi-day itinerary: %d day(s), %d night(s), valid=%s",
        result.total_days, len(result.accommodations), result.validation.is_valid,
    )
    return result


def plan_accommodations(days: list[DaySchedule]) -> list[AccommodationPlan]:
    plans: list[AccommodationPlan] = []
    for day in days:
        if day.accommodation is None:
            continue
        plans.append(
            AccommodationPlan(
                night_number=len(plans) + 1,
                date=day.date,
                location=day.accommodation.location,
                estimated_cost=day.accommodation.estimated_cost_usd,
                nearby_attractions=[d.visit.destination_name for d in day.destinations],
                check_in_time=datetime.combine(day.date, time(config.CHECK_IN_HOUR)),
                check_out_time=datetime.combine(day.date + timedelta(days=1), time(config.CHECK_OUT_HOUR)),
            )
        )
    return plans


def calculate_trip_statistics(days: list[DaySchedule]) -> TripStatistics:
    stats = TripStatistics()
    if not days:
        return stats

    for day in days:
        stats.total_destinations += day.summary.total_destinations
        stats.total_active_hours += day.summary.total_active_hours
        stats.total_travel_hours += day.summary.total_travel_hours
        stats.total_rest_hours += day.summary.total_rest_hours
        for t in day.transport_segments:
            mode = t.segment.transport_mode.value
            stats.distance_by_mode[mode] = stats.distance_by_mode.get(mode, 0.0) + t.segment.distance_km
            stats.total_distance_km += t.segment.distance_km

    stats.average_destinations_per_day = stats.total_destinations / len(days)

    rates = [d.summary.utilization_rate for d in days]
    mean = sum(rates) / len(rates)
    stats.daily_pace_variance = sum((r - mean) ** 2 for r in rates) / len(rates)

    stats.estimated_carbon_kg = sum(
        km * config.CARBON_KG_PER_KM.get(mode, 0.0) for mode, km in stats.distance_by_mode.items()
    )

    nights = [d.accommodation for d in days if d.accommodation is not None]
    for tier in config.ACCOMMODATION_BASE_COST_USD:
        total = sum(a.estimated_cost_usd.band(tier).midpoint for a in nights)
        stats.estimated_accommodation_cost[tier] = TierCostTotal(
            total=total,
            per_night=total / len(nights) if nights else 0.0,
        )
    return stats


def validate_itinerary(days: list[DaySchedule], cfg: DailyScheduleConfig) -> ItineraryValidation:
    result = ItineraryValidation()

    for day in days:
        result.day_validations[day.day_number] = day.validation
        result.overall_errors += [f"{e.code}: {e.message}" for e in day.validation.errors]
        result.overall_warnings += [f"{w.code}: {w.message}" for w in day.validation.warnings]
        result.overall_warnings += [f"{i.code}: {i.message}" for i in validate_meal_schedule(day, cfg)]

    streak = 0
    for day in days:
        streak = streak + 1 if day.summary.pace_rating == "packed" else 0
        if streak == _PACKED_STREAK_DAYS:
            result.suggestions.append(
                f"Days {day.day_number - streak + 1}-{day.day_number} are all packed; "
                f"consider a lighter day in between"
            )
    if len(days) >= _REST_DAY_TRIP_LENGTH and not any(d.summary.pace_rating == "relaxed" for d in days):
        result.suggestions.append("Consider adding a rest day to a trip of this length")

    result.is_valid = not result.overall_errors
    return result
