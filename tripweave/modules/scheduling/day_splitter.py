"""
modules/scheduling/day_splitter.py
------------------------------------
Day Splitter: cuts a linear itinerary into calendar days.

For each visit (in order):
  needed = preceding transport + visit + buffer (15 min)

A new day is started (when the current day already has content) if
  accumulated + needed > max_daily_hours (9 h), or
  start_hour + accumulated + needed is past end_hour (18:00), or
  the preceding transport alone is longer than long_transport_hours (4 h).

Within a day the transport departs at start + accumulated and the visit
starts at the transport's arrival.  The trailing return leg belongs to the
last day.

Lifecycle: days are created empty, filled, then finalized once (summary +
validation).  merge_underutilized_days() re-lays out two light neighbors as
one new day.
"""

from __future__ import annotations
import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from tripweave.schemas.itinerary import DestinationVisit, DetailedTransportSegment, LinearItinerary
from tripweave.schemas.route import TransportMode
from tripweave.schemas.schedule import (
    DailyScheduleConfig,
    DayIssue,
    DaySchedule,
    DaySummary,
    DayValidation,
    ScheduledDestination,
    ScheduledTransport,
)

logger = logging.getLogger(__name__)

_MAX_COMFORTABLE_DESTINATIONS: int   = 6
_MAX_WALKING_KM:               float = 10.0
_MODERATE_PACE_PCT:            float = 60.0
_PACKED_PACE_PCT:              float = 85.0
_RUSHED_VISIT_HOURS:           float = 1.0
_EXTENDED_VISIT_HOURS:         float = 4.0

# (preceding transport or None, visit)
DayItem = tuple[Optional[DetailedTransportSegment], DestinationVisit]


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600.0


def _energy_period(hours_into_day: float, cfg: DailyScheduleConfig) -> str:
    if hours_into_day < cfg.morning_energy_hours:
        return "morning"
    if hours_into_day < cfg.morning_energy_hours + cfg.lunch_duration_hours + cfg.afternoon_energy_hours:
        return "afternoon"
    return "evening"


# ── Layout ─────────────────────────────────────────────────────────────────────

def _schedule_transport(
    segment: DetailedTransportSegment,
    departs: datetime,
    cfg: DailyScheduleConfig,
) -> ScheduledTransport:
    arrives = departs + timedelta(hours=segment.estimated_time_hours)
    lunch = datetime.combine(departs.date(), time(cfg.lunch_start_hour))
    return ScheduledTransport(
        segment=segment,
        scheduled_departure=departs,
        scheduled_arrival=arrives,
        crosses_lunch=departs < lunch < arrives,
        is_day_transition=segment.estimated_time_hours > cfg.long_transport_hours,
    )


def layout_day(
    day_number: int,
    day_date: date,
    items: Sequence[DayItem],
    cfg: DailyScheduleConfig,
    trailing: Optional[DetailedTransportSegment] = None,
) -> DaySchedule:
    """Place *items* on the clock of one day and finalize it."""
    start = datetime.combine(day_date, time(cfg.start_hour))
    day = DaySchedule(day_number=day_number, date=day_date, start_time=start, end_time=start)

    accumulated = 0.0
    for segment, visit in items:
        arrival = start + timedelta(hours=accumulated)
        if segment is not None:
            leg = _schedule_transport(segment, arrival, cfg)
            day.transport_segments.append(leg)
            arrival = leg.scheduled_arrival
        departure = arrival + timedelta(hours=visit.allocated_hours)
        day.destinations.append(
            ScheduledDestination(
                visit=visit,
                scheduled_arrival=arrival,
                scheduled_departure=departure,
                energy_period=_energy_period(_hours(arrival - start), cfg),
                is_rushed=visit.allocated_hours < _RUSHED_VISIT_HOURS,
                is_extended=visit.allocated_hours > _EXTENDED_VISIT_HOURS,
            )
        )
        accumulated = _hours(departure - start) + cfg.buffer_hours

    if trailing is not None:
        departs = start + timedelta(hours=accumulated) if items else start
        day.transport_segments.append(_schedule_transport(trailing, departs, cfg))

    return finalize_day(day, cfg)


def split_into_days(
    itinerary: LinearItinerary,
    start_date: date,
    cfg: Optional[DailyScheduleConfig] = None,
) -> list[DaySchedule]:
    cfg = cfg or DailyScheduleConfig()
    groups: list[list[DayItem]] = []
    current: list[DayItem] = []
    accumulated = 0.0

    for i, visit in enumerate(itinerary.visits):
        segment = itinerary.segment_before(i)
        transport_hours = segment.estimated_time_hours if segment is not None else 0.0
        needed = transport_hours + visit.allocated_hours + cfg.buffer_hours

        if current and (
            accumulated + needed > cfg.max_daily_hours
            or cfg.start_hour + accumulated + needed > cfg.end_hour
            or transport_hours > cfg.long_transport_hours
        ):
            groups.append(current)
            current, accumulated = [], 0.0

        current.append((segment, visit))
        accumulated += needed

    if current:
        groups.append(current)

    trailing = itinerary.return_segment
    if not groups:
        if trailing is None:
            return []
        return [layout_day(1, start_date, [], cfg, trailing)]

    days = [
        layout_day(
            n + 1,
            start_date + timedelta(days=n),
            group,
            cfg,
            trailing if n == len(groups) - 1 else None,
        )
        for n, group in enumerate(groups)
    ]
    logger.info("Split %d visit(s) into %d day(s)", len(itinerary.visits), len(days))
    return days


# ── Finalize: summary + validation ─────────────────────────────────────────────

def day_end_time(day: DaySchedule) -> datetime:
    """Latest end among visits, legs and meals (start when empty)."""
    ends = [day.start_time]
    ends += [d.scheduled_departure for d in day.destinations]
    ends += [t.scheduled_arrival for t in day.transport_segments]
    ends += [m.end_time for m in day.meals]
    return max(ends)


def calculate_day_summary(day: DaySchedule, cfg: DailyScheduleConfig) -> DaySummary:
    active = sum(d.visit.allocated_hours for d in day.destinations)
    travel = sum(t.segment.estimated_time_hours for t in day.transport_segments)
    rest = sum(m.duration_hours for m in day.meals)
    walking = sum(
        t.segment.distance_km for t in day.transport_segments
        if t.segment.transport_mode == TransportMode.WALKING
    )
    utilization = (active + travel) / cfg.max_daily_hours * 100 if cfg.max_daily_hours > 0 else 0.0

    if utilization < _MODERATE_PACE_PCT:
        pace = "relaxed"
    elif utilization < _PACKED_PACE_PCT:
        pace = "moderate"
    else:
        pace = "packed"

    return DaySummary(
        total_destinations=len(day.destinations),
        total_active_hours=active,
        total_travel_hours=travel,
        total_rest_hours=rest,
        walking_distance_km=walking,
        total_distance_km=sum(t.segment.distance_km for t in day.transport_segments),
        utilization_rate=utilization,
        pace_rating=pace,
    )


def validate_day_schedule(day: DaySchedule, cfg: DailyScheduleConfig) -> DayValidation:
    s = day.summary
    result = DayValidation()
    n = day.day_number

    busy = s.total_active_hours + s.total_travel_hours
    if busy > cfg.max_daily_hours:
        result.errors.append(DayIssue(
            code="EXCEEDS_DAILY_LIMIT",
            message=f"Day {n} has {busy:.1f} hours of activities (limit: {cfg.max_daily_hours:g})",
            severity="high",
        ))
    if s.total_destinations > _MAX_COMFORTABLE_DESTINATIONS:
        result.warnings.append(DayIssue(
            code="TOO_MANY_DESTINATIONS",
            message=f"Day {n} has {s.total_destinations} destinations which may be tiring",
            severity="medium",
        ))
    if s.walking_distance_km > _MAX_WALKING_KM:
        result.warnings.append(DayIssue(
            code="EXCESSIVE_WALKING",
            message=f"Day {n} includes {s.walking_distance_km:.1f}km of walking",
            severity="high",
        ))
    if day.end_time >= datetime.combine(day.date, time(cfg.end_hour)):
        result.warnings.append(DayIssue(
            code="LATE_FINISH",
            message=f"Day {n} ends after {cfg.end_hour:02d}:00",
            severity="low",
        ))
    if s.utilization_rate >= _PACKED_PACE_PCT:
        result.warnings.append(DayIssue(
            code="PACKED_SCHEDULE",
            message=f"Day {n} has a very packed schedule ({s.utilization_rate:.0f}% utilization)",
            severity="medium",
        ))

    result.is_valid = not result.errors
    return result


def refresh_day(day: DaySchedule, cfg: DailyScheduleConfig) -> DaySchedule:
    """Copy of *day* with end time, summary and validation recomputed."""
    updated = replace(day, end_time=day_end_time(day))
    updated.summary = calculate_day_summary(updated, cfg)
    updated.validation = validate_day_schedule(updated, cfg)
    return updated


def finalize_day(day: DaySchedule, cfg: DailyScheduleConfig) -> DaySchedule:
    if day.finalized:
        raise RuntimeError(f"ERROR_DAY_ALREADY_FINALIZED: day {day.day_number}")
    finalized = refresh_day(day, cfg)
    finalized.finalized = True
    return finalized


# ── Merge pass ─────────────────────────────────────────────────────────────────

def _day_items(day: DaySchedule) -> tuple[list[DayItem], Optional[DetailedTransportSegment]]:
    """Recover (leg, visit) pairs and the trailing leg from a laid-out day."""
    by_target = {t.segment.to_location.id: t.segment for t in day.transport_segments}
    visit_ids = {d.visit.location.id for d in day.destinations}
    items: list[DayItem] = [(by_target.get(d.visit.location.id), d.visit) for d in day.destinations]
    trailing = next(
        (t.segment for t in reversed(day.transport_segments)
         if t.segment.to_location.id not in visit_ids),
        None,
    )
    return items, trailing


def _can_merge(a: DaySchedule, b: DaySchedule, cfg: DailyScheduleConfig) -> bool:
    if a.summary.utilization_rate >= cfg.merge_utilization_pct:
        return False
    if b.summary.utilization_rate >= cfg.merge_utilization_pct:
        return False
    combined = (
        a.summary.total_active_hours + a.summary.total_travel_hours
        + b.summary.total_active_hours + b.summary.total_travel_hours
    )
    if combined > cfg.max_daily_hours:
        return False
    # a long leg opening day b marks an overnight move
    return not any(t.is_day_transition for t in b.transport_segments)


def merge_underutilized_days(
    days: Sequence[DaySchedule],
    cfg: Optional[DailyScheduleConfig] = None,
) -> list[DaySchedule]:
    """
    Combine adjacent days that are both under `merge_utilization_pct`.
    Result days are renumbered from 1 and dated consecutively from the first.
    """
    cfg = cfg or DailyScheduleConfig()
    if len(days) <= 1:
        return list(days)

    merged: list[DaySchedule] = [days[0]]
    for day in days[1:]:
        last = merged[-1]
        if _can_merge(last, day, cfg):
            items_a, trailing_a = _day_items(last)
            items_b, trailing_b = _day_items(day)
            merged[-1] = layout_day(last.day_number, last.date, items_a + items_b, cfg, trailing_b or trailing_a)
            logger.debug("Merged day %d into day %d", day.day_number, last.day_number)
        else:
            merged.append(day)

    if len(merged) == len(days):
        return merged

    first_date = days[0].date
    result: list[DaySchedule] = []
    for n, day in enumerate(merged):
        new_date = first_date + timedelta(days=n)
        if day.day_number == n + 1 and day.date == new_date:
            result.append(day)
            continue
        items, trailing = _day_items(day)
        result.append(layout_day(n + 1, new_date, items, cfg, trailing))
    logger.info("Merged %d day(s) into %d", len(days), len(result))
    return result
