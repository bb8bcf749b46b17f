"""
modules/preprocessing/normalizer.py
-------------------------------------
Preference Normalizer: per-traveler z-score standardization of 1–5 ratings.

Travelers use the rating scale differently (one gives everything 4–5,
another spreads 1–5).  Z-scoring each traveler against their own mean and
population standard deviation makes ratings comparable across the group.

  z = (score − mean) / std          std == 0 or a single rating → z = 0
"""

from __future__ import annotations
import logging
import math
from typing import Iterable

import tripweave.config as config
from tripweave.schemas.preferences import (
    NormalizationResult,
    StandardizedPreference,
    TravelerStatistics,
)
from tripweave.schemas.trip import RawPreference

logger = logging.getLogger(__name__)

_MIN_RELIABLE_RATINGS: int = 3


def _population_std(values: list[int], mean: float) -> float:
    if not values:
        return 0.0
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def normalize_preferences(preferences: Iterable[RawPreference]) -> NormalizationResult:
    """
    Standardize every rating against its traveler's own statistics.

    Returns one StandardizedPreference per input preference, in input order.
    """
    prefs = list(preferences)
    result = NormalizationResult()

    # ── Group by traveler ──────────────────────────────────────────────────
    names: dict[str, str] = {}
    for pref in prefs:
        stats = result.traveler_statistics.setdefault(
            pref.traveler_key, TravelerStatistics(traveler_key=pref.traveler_key)
        )
        stats.ratings.append(pref.score)
        if pref.traveler_name and pref.traveler_key not in names:
            names[pref.traveler_key] = pref.traveler_name

    # ── Moments + warnings ─────────────────────────────────────────────────
    for key, stats in result.traveler_statistics.items():
        stats.rating_count = len(stats.ratings)
        stats.mean = sum(stats.ratings) / stats.rating_count
        stats.standard_deviation = _population_std(stats.ratings, stats.mean)
        display = names.get(key, key)

        if stats.rating_count < _MIN_RELIABLE_RATINGS:
            result.warnings.append(
                f"User {display} has only {stats.rating_count} ratings. "
                f"Normalization may be less reliable."
            )
        if stats.standard_deviation == 0:
            result.warnings.append(
                f"User {display} gave the same rating ({stats.ratings[0]}) to all destinations."
            )

    # ── Standardize ────────────────────────────────────────────────────────
    for pref in prefs:
        stats = result.traveler_statistics[pref.traveler_key]
        if stats.standard_deviation == 0 or stats.rating_count == 1:
            z = 0.0
        else:
            z = (pref.score - stats.mean) / stats.standard_deviation

        duration = pref.preferred_duration_hours
        if duration is None:
            duration = config.DEFAULT_DESTINATION_HOURS

        result.standardized_preferences.append(
            StandardizedPreference(
                traveler_key=pref.traveler_key,
                destination_id=pref.destination_id,
                original_score=pref.score,
                standardized_score=z,
                preferred_duration_hours=duration,
                traveler_name=pref.traveler_name or names.get(pref.traveler_key, ""),
                traveler_color=pref.traveler_color,
            )
        )

    logger.debug(
        "Normalized %d preference(s) for %d traveler(s)",
        len(result.standardized_preferences), len(result.traveler_statistics),
    )
    return result


def analyze_normalization_quality(result: NormalizationResult) -> dict:
    """Which travelers' z-scores carry no signal."""
    single = [k for k, s in result.traveler_statistics.items() if s.rating_count == 1]
    identical = [
        k for k, s in result.traveler_statistics.items()
        if s.rating_count > 1 and s.standard_deviation == 0
    ]
    total = len(result.traveler_statistics)
    return {
        "total_travelers": total,
        "travelers_with_single_rating": single,
        "travelers_with_identical_ratings": identical,
        "informative_travelers": total - len(single) - len(identical),
        "warnings": list(result.warnings),
    }
