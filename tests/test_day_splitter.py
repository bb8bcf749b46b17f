from datetime import datetime, timedelta

import pytest

from tripweave.modules.scheduling.day_splitter import (
    finalize_day,
    layout_day,
    merge_underutilized_days,
    split_into_days,
)
from tripweave.schemas.itinerary import LinearItinerary
from tripweave.schemas.schedule import DailyScheduleConfig

from conftest import DAY, HOME, make_segment, make_visit


def _itinerary(visit_hours, leg_hours=0.25, with_return=True):
    visits, segments = [], []
    here = HOME
    for i, hours in enumerate(visit_hours, start=1):
        visit = make_visit(f"stop{i}", hours, lat=48.86 + i * 0.001, order=i)
        segments.append(make_segment(f"seg-{i}", here, visit.location, leg_hours))
        visits.append(visit)
        here = visit.location
    if with_return:
        segments.append(make_segment(f"seg-{len(visits) + 1}", here, HOME, leg_hours))
    start = datetime.combine(DAY, datetime.min.time())
    return LinearItinerary("t", start, start, HOME, None, visits=visits, segments=segments)


def _busy_hours(day):
    return (
        sum(d.visit.allocated_hours for d in day.destinations)
        + sum(t.segment.estimated_time_hours for t in day.transport_segments)
        + sum(m.duration_hours for m in day.meals)
    )


def test_three_long_visits_need_two_days():
    days = split_into_days(_itinerary([3.0, 3.0, 3.0]), DAY)

    assert [d.day_number for d in days] == [1, 2]
    assert [len(d.destinations) for d in days] == [2, 1]
    assert days[1].date == DAY + timedelta(days=1)
    assert all(d.finalized for d in days)


def test_layout_places_legs_then_visits_with_buffer():
    day = split_into_days(_itinerary([3.0, 3.0, 3.0]), DAY)[0]

    first_leg, second_leg = day.transport_segments
    assert first_leg.scheduled_departure == datetime(2025, 6, 2, 9, 0)
    assert day.destinations[0].scheduled_arrival == datetime(2025, 6, 2, 9, 15)
    assert day.destinations[0].scheduled_departure == datetime(2025, 6, 2, 12, 15)
    assert second_leg.scheduled_departure == datetime(2025, 6, 2, 12, 30)
    assert day.destinations[1].scheduled_arrival == datetime(2025, 6, 2, 12, 45)
    assert day.destinations[0].energy_period == "morning"
    assert day.destinations[1].energy_period == "afternoon"


def test_busy_time_fits_between_start_and_end():
    for day in split_into_days(_itinerary([2.0, 1.5, 4.0, 0.5, 3.0, 2.5]), DAY):
        span = (day.end_time - day.start_time).total_seconds() / 3600
        assert _busy_hours(day) <= span + 1e-9


def test_return_leg_lands_on_last_day():
    days = split_into_days(_itinerary([3.0, 3.0, 3.0]), DAY)

    assert days[-1].transport_segments[-1].segment.to_location.id == HOME.id
    assert days[-1].end_time == days[-1].transport_segments[-1].scheduled_arrival


def test_long_leg_starts_a_new_day():
    itinerary = _itinerary([1.0, 1.0], with_return=False)
    itinerary.segments[1] = make_segment("seg-2", itinerary.visits[0].location, itinerary.visits[1].location, 4.5)

    days = split_into_days(itinerary, DAY)

    assert len(days) == 2
    assert days[1].transport_segments[0].is_day_transition


def test_no_visits_and_no_return_gives_no_days():
    assert split_into_days(_itinerary([], with_return=False), DAY) == []


def test_overfull_day_is_flagged():
    day = layout_day(1, DAY, [(None, make_visit("marathon", 10.0))], DailyScheduleConfig())

    codes = [e.code for e in day.validation.errors]
    assert codes == ["EXCEEDS_DAILY_LIMIT"]
    assert day.validation.errors[0].message == "Day 1 has 10.0 hours of activities (limit: 9)"
    warning_codes = {w.code for w in day.validation.warnings}
    assert {"LATE_FINISH", "PACKED_SCHEDULE"} <= warning_codes
    assert day.summary.pace_rating == "packed"
    assert not day.validation.is_valid


def test_finalize_only_once():
    day = layout_day(1, DAY, [(None, make_visit("louvre", 1.0))], DailyScheduleConfig())
    with pytest.raises(RuntimeError, match="ERROR_DAY_ALREADY_FINALIZED"):
        finalize_day(day, DailyScheduleConfig())


def test_light_neighbors_are_merged_and_renumbered():
    cfg = DailyScheduleConfig()
    v1, v2, v3 = make_visit("a", 1.0), make_visit("b", 1.0, lat=48.87), make_visit("c", 8.0, lat=48.88)
    days = [
        layout_day(1, DAY, [(make_segment("seg-1", HOME, v1.location, 0.25), v1)], cfg),
        layout_day(2, DAY + timedelta(days=1), [(make_segment("seg-2", v1.location, v2.location, 0.25), v2)], cfg),
        layout_day(3, DAY + timedelta(days=2), [(None, v3)], cfg),
    ]

    merged = merge_underutilized_days(days, cfg)

    assert [d.day_number for d in merged] == [1, 2]
    assert [d.date for d in merged] == [DAY, DAY + timedelta(days=1)]
    assert [sd.visit.destination_id for sd in merged[0].destinations] == ["a", "b"]
    assert len(merged[0].transport_segments) == 2
    assert merged[0].destinations[1].scheduled_arrival > merged[0].destinations[0].scheduled_departure


def test_day_transition_blocks_merge():
    cfg = DailyScheduleConfig(long_transport_hours=0.5)
    v1, v2 = make_visit("a", 1.0), make_visit("b", 1.0, lat=48.95)
    days = [
        layout_day(1, DAY, [(None, v1)], cfg),
        layout_day(2, DAY + timedelta(days=1), [(make_segment("seg-2", v1.location, v2.location, 1.0), v2)], cfg),
    ]

    assert len(merge_underutilized_days(days, cfg)) == 2


def test_leg_spanning_noon_is_flagged_as_crossing_lunch():
    # 09:00–11:30 first visit, 11:45–12:30 drive, no full hour boundary after noon
    v1 = make_visit("louvre", 2.5)
    v2 = make_visit("versailles", 2.0, lat=48.8049, lon=2.1204, order=2)
    leg = make_segment("seg-2", v1.location, v2.location, 0.75)

    day = layout_day(1, DAY, [(None, v1), (leg, v2)], DailyScheduleConfig())

    (scheduled,) = day.transport_segments
    assert scheduled.scheduled_departure == datetime(2025, 6, 2, 11, 45)
    assert scheduled.scheduled_arrival == datetime(2025, 6, 2, 12, 30)
    assert scheduled.crosses_lunch


def test_afternoon_leg_does_not_cross_lunch():
    day = split_into_days(_itinerary([3.0, 3.0, 3.0]), DAY)[0]

    assert [t.crosses_lunch for t in day.transport_segments] == [False, False]
