from datetime import datetime

import pytest

from tripweave.modules.scheduling.day_splitter import layout_day
from tripweave.modules.scheduling.meal_scheduler import (
    add_dinner_if_needed,
    insert_lunch_break,
    validate_meal_schedule,
)
from tripweave.schemas.schedule import DailyScheduleConfig

from conftest import DAY, make_segment, make_visit

CFG = DailyScheduleConfig()


def _at(hour, minute=0):
    return datetime(2025, 6, 2, hour, minute)


def _morning_then_afternoon():
    # 09:00–12:30 first visit, 12:45–13:00 walk, 13:00–15:00 second visit
    v1 = make_visit("louvre", 3.5, lat=48.8606, lon=2.3376)
    v2 = make_visit("orsay", 2.0, lat=48.8600, lon=2.3266, order=2)
    return layout_day(1, DAY, [(None, v1), (make_segment("seg-2", v1.location, v2.location, 0.25), v2)], CFG)


def test_lunch_follows_visit_ending_in_lunch_window():
    day = insert_lunch_break(_morning_then_afternoon(), CFG)

    (lunch,) = day.meals
    assert lunch.type == "lunch"
    assert (lunch.start_time, lunch.end_time) == (_at(12, 45), _at(13, 45))
    assert lunch.location.id == "day-1-lunch"
    assert lunch.location.name == "Between Louvre and Orsay"
    assert lunch.nearby_destination == "Orsay"


def test_lunch_pushes_later_items_back_one_hour():
    day = insert_lunch_break(_morning_then_afternoon(), CFG)

    assert day.destinations[0].scheduled_departure == _at(12, 30)
    assert day.transport_segments[0].scheduled_departure == _at(13, 45)
    assert (day.destinations[1].scheduled_arrival, day.destinations[1].scheduled_departure) == (_at(14), _at(16))
    assert day.end_time == _at(16)
    assert day.summary.total_rest_hours == 1.0


def test_lunch_inserted_once():
    once = insert_lunch_break(_morning_then_afternoon(), CFG)
    assert insert_lunch_break(once, CFG) is once


def test_morning_only_day_gets_no_lunch():
    day = layout_day(1, DAY, [(None, make_visit("louvre", 1.5))], CFG)
    assert insert_lunch_break(day, CFG).meals == []


def test_dinner_after_late_finish():
    day = layout_day(1, DAY, [(None, make_visit("versailles", 9.5))], CFG)

    day = add_dinner_if_needed(day, CFG)

    (dinner,) = day.meals
    assert (dinner.start_time, dinner.end_time) == (_at(18, 45), _at(20, 15))
    assert dinner.location.id == "day-1-dinner"


def test_no_dinner_for_early_finish():
    day = _morning_then_afternoon()
    assert add_dinner_if_needed(day, CFG) is day


def test_lunch_and_dinner_never_overlap():
    v1 = make_visit("louvre", 3.0)
    v2 = make_visit("orsay", 5.5, lat=48.8600, lon=2.3266)
    day = layout_day(1, DAY, [(None, v1), (make_segment("seg-2", v1.location, v2.location, 0.25), v2)], CFG)

    day = add_dinner_if_needed(insert_lunch_break(day, CFG), CFG)

    lunch, dinner = day.meals
    assert lunch.end_time <= dinner.start_time
    assert dinner.start_time > day.destinations[-1].scheduled_departure
    assert [i.code for i in validate_meal_schedule(day, CFG)] == []


def test_missing_lunch_is_reported():
    issues = validate_meal_schedule(_morning_then_afternoon(), CFG)
    assert [i.code for i in issues] == ["MISSING_LUNCH"]


def test_lunch_midpoint_across_the_date_line():
    v1 = make_visit("taveuni", 3.5, lat=-16.8, lon=179.99)
    v2 = make_visit("savusavu", 2.0, lat=-16.8, lon=-179.99, order=2)
    day = layout_day(1, DAY, [(None, v1), (make_segment("seg-2", v1.location, v2.location, 0.25), v2)], CFG)

    (lunch,) = insert_lunch_break(day, CFG).meals

    assert abs(lunch.location.longitude) > 179.9
    assert lunch.location.latitude == pytest.approx(-16.8, abs=1e-3)
