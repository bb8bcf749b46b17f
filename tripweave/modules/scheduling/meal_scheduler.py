"""
modules/scheduling/meal_scheduler.py
--------------------------------------
Lunch and dinner insertion for finalized DaySchedules.

Lunch (once per day, only when the day spans the lunch window):
  anchor = first visit departing within 11:30–13:00
        → else the first visit spanning noon
        → else the visit departing closest to noon
  lunch  = [anchor departure + buffer, +1 h], located at the spherical
           midpoint of the anchor and the next visit
  every later visit and leg is pushed back by the lunch duration.

Dinner (1.5 h) follows the day's last activity + buffer when the day ends at
or after end_hour (18:00).

Both passes return updated copies; the input day is left untouched.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from datetime import datetime, time, timedelta
from typing import Optional

from tripweave.modules.scheduling.day_splitter import day_end_time, refresh_day
from tripweave.modules.tool_usage.distance_tool import spherical_centroid
from tripweave.schemas.schedule import (
    DailyScheduleConfig,
    DayIssue,
    DaySchedule,
    MealBreak,
    ScheduledDestination,
)
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)

_LUNCH_WINDOW_OPEN:  time = time(11, 30)
_LUNCH_WINDOW_CLOSE: time = time(13, 0)
_LUNCH_EARLIEST_HOUR:  int = 11
_LUNCH_LATEST_HOUR:    int = 14
_DINNER_EARLIEST_HOUR: int = 17
_DINNER_LATEST_HOUR:   int = 21


def _spans_lunch(day: DaySchedule, cfg: DailyScheduleConfig) -> bool:
    return day.end_time.hour > cfg.lunch_start_hour and day.start_time.hour < cfg.lunch_start_hour + 1


def _lunch_anchor(day: DaySchedule, cfg: DailyScheduleConfig) -> int:
    noon = datetime.combine(day.date, time(cfg.lunch_start_hour))
    window_open = datetime.combine(day.date, _LUNCH_WINDOW_OPEN)
    window_close = datetime.combine(day.date, _LUNCH_WINDOW_CLOSE)

    for i, sd in enumerate(day.destinations):
        if window_open <= sd.scheduled_departure <= window_close:
            return i
    for i, sd in enumerate(day.destinations):
        if sd.scheduled_arrival <= noon <= sd.scheduled_departure:
            return i
    return min(
        range(len(day.destinations)),
        key=lambda i: abs((day.destinations[i].scheduled_departure - noon).total_seconds()),
    )


def _midpoint(day_number: int, a: ScheduledDestination, b: ScheduledDestination) -> Location:
    mid = spherical_centroid([a.visit.location, b.visit.location])
    return Location(
        id=f"day-{day_number}-lunch",
        latitude=mid.latitude,
        longitude=mid.longitude,
        name=f"Between {a.visit.destination_name} and {b.visit.destination_name}",
    )


def insert_lunch_break(day: DaySchedule, cfg: Optional[DailyScheduleConfig] = None) -> DaySchedule:
    cfg = cfg or DailyScheduleConfig()
    if not day.destinations or any(m.type == "lunch" for m in day.meals):
        return day
    if not _spans_lunch(day, cfg):
        return day

    idx = _lunch_anchor(day, cfg)
    anchor = day.destinations[idx]
    lunch_start = anchor.scheduled_departure + timedelta(hours=cfg.buffer_hours)
    shift = timedelta(hours=cfg.lunch_duration_hours)

    if idx + 1 < len(day.destinations):
        following = day.destinations[idx + 1]
        location = _midpoint(day.day_number, anchor, following)
        nearby = following.visit.destination_name
    else:
        last = anchor.visit.location
        location = Location(
            id=f"day-{day.day_number}-lunch",
            latitude=last.latitude,
            longitude=last.longitude,
            name=anchor.visit.destination_name,
        )
        nearby = anchor.visit.destination_name

    destinations = [
        replace(sd, scheduled_arrival=sd.scheduled_arrival + shift,
                scheduled_departure=sd.scheduled_departure + shift) if i > idx else sd
        for i, sd in enumerate(day.destinations)
    ]
    transports = [
        replace(t, scheduled_departure=t.scheduled_departure + shift,
                scheduled_arrival=t.scheduled_arrival + shift)
        if t.scheduled_departure >= anchor.scheduled_departure else t
        for t in day.transport_segments
    ]
    meals = [
        replace(m, start_time=m.start_time + shift, end_time=m.end_time + shift)
        if m.start_time >= anchor.scheduled_departure else m
        for m in day.meals
    ]
    lunch = MealBreak(
        type="lunch",
        start_time=lunch_start,
        end_time=lunch_start + shift,
        location=location,
        nearby_destination=nearby,
    )

    updated = replace(
        day,
        destinations=destinations,
        transport_segments=transports,
        meals=sorted(meals + [lunch], key=lambda m: m.start_time),
    )
    logger.debug("Day %d: lunch at %s", day.day_number, lunch_start.strftime("%H:%M"))
    return refresh_day(updated, cfg)


def add_dinner_if_needed(day: DaySchedule, cfg: Optional[DailyScheduleConfig] = None) -> DaySchedule:
    cfg = cfg or DailyScheduleConfig()
    if not day.destinations or any(m.type == "dinner" for m in day.meals):
        return day
    if day.end_time < datetime.combine(day.date, time(cfg.end_hour)):
        return day

    start = day_end_time(day) + timedelta(hours=cfg.buffer_hours)
    last = day.destinations[-1].visit
    dinner = MealBreak(
        type="dinner",
        start_time=start,
        end_time=start + timedelta(hours=cfg.dinner_duration_hours),
        location=Location(
            id=f"day-{day.day_number}-dinner",
            latitude=last.location.latitude,
            longitude=last.location.longitude,
            name=last.destination_name,
        ),
        nearby_destination=last.destination_name,
    )
    return refresh_day(replace(day, meals=day.meals + [dinner]), cfg)


def validate_meal_schedule(day: DaySchedule, cfg: Optional[DailyScheduleConfig] = None) -> list[DayIssue]:
    cfg = cfg or DailyScheduleConfig()
    issues: list[DayIssue] = []
    n = day.day_number

    lunches = [m for m in day.meals if m.type == "lunch"]
    if day.destinations and not lunches and _spans_lunch(day, cfg):
        issues.append(DayIssue("MISSING_LUNCH", f"Day {n} has no lunch break", "medium"))

    ordered = sorted(day.meals, key=lambda m: m.start_time)
    for a, b in zip(ordered, ordered[1:]):
        if b.start_time < a.end_time:
            issues.append(DayIssue("MEAL_OVERLAP", f"Day {n}: {a.type} overlaps {b.type}", "high"))

    for meal in lunches:
        if meal.start_time.hour < _LUNCH_EARLIEST_HOUR or meal.start_time.hour > _LUNCH_LATEST_HOUR:
            issues.append(DayIssue(
                "UNUSUAL_LUNCH_TIME",
                f"Day {n} lunch starts at {meal.start_time:%H:%M}",
                "low",
            ))
    for meal in (m for m in day.meals if m.type == "dinner"):
        if meal.start_time.hour < _DINNER_EARLIEST_HOUR or meal.start_time.hour > _DINNER_LATEST_HOUR:
            issues.append(DayIssue(
                "UNUSUAL_DINNER_TIME",
                f"Day {n} dinner starts at {meal.start_time:%H:%M}",
                "low",
            ))
    return issues
