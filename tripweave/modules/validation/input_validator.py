"""
modules/validation/input_validator.py
---------------------------------------
Input-contract checks applied to a TripInput before any optimization stage
runs.  Errors halt the pipeline; warnings are reported and planning goes on.

Every entry is "<CODE>: <message>".

  Errors:
    ✓ MISSING_DEPARTURE_LOCATION   no departure point
    ✓ INVALID_COORDINATES          lat ∉ [-90, 90], lon ∉ [-180, 180], non-numeric
    ✓ MISSING_DESTINATION_NAME     empty destination name
    ✓ DUPLICATE_DESTINATION        two destinations share an id
    ✓ INVALID_PREFERENCE_SCORE     score not an integer in 1..5
    ✓ INVALID_DURATION             preferred duration <= 0
    ✓ MISSING_USER_REFERENCE       preference without a traveler key
    ✓ ORPHANED_PREFERENCE          unknown destination, or traveler outside the
                                   explicit member list
    ✓ INVALID_DATE_RANGE           start date after end date
    ✓ MISSING_GROUP_MEMBERS        nobody to plan for

  Warnings:
    ✓ NO_DESTINATIONS
    ✓ DESTINATION_NO_PREFERENCES

Usage:
    from tripweave.modules.validation import validate_trip_input

    result = validate_trip_input(trip)
    if not result.valid:
        print(result.errors)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from tripweave.schemas.trip import Location, TripInput

_MIN_SCORE: int = 1
_MAX_SCORE: int = 5


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:    True iff there are zero errors.
        errors:   "CODE: message" failure reasons.
        warnings: "CODE: message" notes that do not block planning.
        record:   The validated input (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    record: Any = field(default=None, repr=False)

    def __bool__(self) -> bool:
        return self.valid

    @property
    def error_codes(self) -> list[str]:
        return [e.split(":", 1)[0] for e in self.errors]


# ── Coordinates ────────────────────────────────────────────────────────────────

def _coordinate_error(label: str, lat: Any, lon: Any) -> Optional[str]:
    if isinstance(lat, bool) or isinstance(lon, bool):
        return f"INVALID_COORDINATES: {label} has non-numeric coordinates (lat={lat!r}, lon={lon!r})"
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        return f"INVALID_COORDINATES: {label} has non-numeric coordinates (lat={lat!r}, lon={lon!r})"

    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lon_f <= 180.0):
        return (
            f"INVALID_COORDINATES: {label} is outside the valid range "
            f"(lat={lat_f}, lon={lon_f})"
        )
    return None


def _check_location(label: str, loc: Location, errors: list[str]) -> None:
    err = _coordinate_error(label, loc.latitude, loc.longitude)
    if err:
        errors.append(err)


# ── Trip validation ────────────────────────────────────────────────────────────

def validate_trip_input(trip: TripInput) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []

    # ── Departure / return ─────────────────────────────────────────────────
    if trip.departure is None:
        errors.append("MISSING_DEPARTURE_LOCATION: a departure location is required")
    else:
        _check_location("departure location", trip.departure, errors)
    if trip.return_location is not None:
        _check_location("return location", trip.return_location, errors)

    # ── Destinations ───────────────────────────────────────────────────────
    if not trip.destinations:
        warnings.append("NO_DESTINATIONS: the trip has no destinations to plan")

    seen_ids: set[str] = set()
    for dest in trip.destinations:
        label = f"destination {dest.name or dest.id!r}"
        if not dest.name or not str(dest.name).strip():
            errors.append(f"MISSING_DESTINATION_NAME: destination {dest.id!r} has no name")
        if dest.id in seen_ids:
            errors.append(f"DUPLICATE_DESTINATION: destination id {dest.id!r} appears more than once")
        seen_ids.add(dest.id)
        err = _coordinate_error(label, dest.latitude, dest.longitude)
        if err:
            errors.append(err)

    # ── Preferences ────────────────────────────────────────────────────────
    members = set(trip.traveler_keys)
    rated: set[str] = set()
    for pref in trip.preferences:
        score = pref.score
        if isinstance(score, bool) or not isinstance(score, int) or not (_MIN_SCORE <= score <= _MAX_SCORE):
            errors.append(
                f"INVALID_PREFERENCE_SCORE: score={score!r} for destination "
                f"{pref.destination_id!r} must be an integer in [{_MIN_SCORE}, {_MAX_SCORE}]"
            )

        duration = pref.preferred_duration_hours
        if duration is not None:
            try:
                if float(duration) <= 0:
                    errors.append(
                        f"INVALID_DURATION: preferred duration {duration!r} for destination "
                        f"{pref.destination_id!r} must be > 0"
                    )
            except (TypeError, ValueError):
                errors.append(f"INVALID_DURATION: preferred duration {duration!r} must be numeric")

        if not pref.traveler_key:
            errors.append(
                f"MISSING_USER_REFERENCE: preference for destination "
                f"{pref.destination_id!r} has no traveler"
            )
        elif members and pref.traveler_key not in members:
            errors.append(
                f"ORPHANED_PREFERENCE: traveler {pref.traveler_key!r} is not a member of the group"
            )

        if pref.destination_id not in seen_ids:
            errors.append(
                f"ORPHANED_PREFERENCE: preference references unknown destination "
                f"{pref.destination_id!r}"
            )
        rated.add(pref.destination_id)

    for dest in trip.destinations:
        if dest.id not in rated:
            warnings.append(
                f"DESTINATION_NO_PREFERENCES: nobody rated {dest.name or dest.id!r}"
            )

    # ── Dates ──────────────────────────────────────────────────────────────
    window = trip.window
    if window.start_date is not None and window.end_date is not None and window.start_date > window.end_date:
        errors.append(
            f"INVALID_DATE_RANGE: start_date={window.start_date} is after end_date={window.end_date}"
        )

    # ── Group ──────────────────────────────────────────────────────────────
    if not trip.all_traveler_keys():
        errors.append("MISSING_GROUP_MEMBERS: the trip has no travelers")

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings, record=trip)
