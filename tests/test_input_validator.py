from datetime import date

from tripweave.modules.validation import validate_trip_input
from tripweave.schemas.trip import Destination, Location, RawPreference, TripInput, TripWindow

from conftest import HOME


def _trip(**overrides):
    base = dict(
        trip_id="t",
        destinations=[Destination("louvre", "Louvre", 48.8606, 2.3376), Destination("orsay", "Orsay", 48.86, 2.3266)],
        preferences=[RawPreference("ana", "louvre", 5, 2.0), RawPreference("ana", "orsay", 3, 1.5)],
        departure=HOME,
    )
    base.update(overrides)
    return TripInput(**base)


def test_valid_trip_has_no_errors():
    result = validate_trip_input(_trip())

    assert result.valid and bool(result)
    assert result.errors == []
    assert result.warnings == []


def test_missing_departure():
    result = validate_trip_input(_trip(departure=None))
    assert result.error_codes == ["MISSING_DEPARTURE_LOCATION"]


def test_out_of_range_and_non_numeric_coordinates():
    result = validate_trip_input(_trip(
        departure=Location("home", 91.0, 2.0),
        destinations=[Destination("louvre", "Louvre", "north", 2.3), Destination("orsay", "Orsay", 48.86, 181.0)],
    ))
    assert result.error_codes.count("INVALID_COORDINATES") == 3


def test_bad_scores_and_durations():
    result = validate_trip_input(_trip(preferences=[
        RawPreference("ana", "louvre", 6, 2.0),
        RawPreference("ana", "orsay", 2.5, 0.0),
    ]))
    assert result.error_codes == ["INVALID_PREFERENCE_SCORE", "INVALID_PREFERENCE_SCORE", "INVALID_DURATION"]


def test_duplicates_names_and_orphans():
    result = validate_trip_input(_trip(
        destinations=[Destination("louvre", "", 48.86, 2.33), Destination("louvre", "Louvre", 48.86, 2.33)],
        preferences=[RawPreference("ana", "louvre", 5), RawPreference("", "louvre", 4), RawPreference("ana", "pantheon", 3)],
    ))
    assert set(result.error_codes) == {
        "MISSING_DESTINATION_NAME", "DUPLICATE_DESTINATION", "MISSING_USER_REFERENCE", "ORPHANED_PREFERENCE",
    }


def test_traveler_outside_member_list_is_orphaned():
    result = validate_trip_input(_trip(traveler_keys=["ben"]))
    assert result.error_codes == ["ORPHANED_PREFERENCE", "ORPHANED_PREFERENCE"]


def test_reversed_dates():
    result = validate_trip_input(_trip(window=TripWindow(date(2025, 6, 5), date(2025, 6, 2))))
    assert result.error_codes == ["INVALID_DATE_RANGE"]


def test_nobody_to_plan_for():
    result = validate_trip_input(_trip(preferences=[]))
    assert result.error_codes == ["MISSING_GROUP_MEMBERS"]
    assert len(result.warnings) == 2
    assert all(w.startswith("DESTINATION_NO_PREFERENCES") for w in result.warnings)


def test_empty_destination_list_is_only_a_warning():
    result = validate_trip_input(_trip(destinations=[], preferences=[], traveler_keys=["ana"]))
    assert result.valid
    assert result.warnings == ["NO_DESTINATIONS: the trip has no destinations to plan"]
