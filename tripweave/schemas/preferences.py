"""
schemas/preferences.py
----------------------
Outputs of the Preference Normalizer.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StandardizedPreference:
    """One (traveler, destination) rating after per-traveler z-scoring."""
    traveler_key: str
    destination_id: str
    original_score: int
    standardized_score: float
    preferred_duration_hours: float
    traveler_name: str = ""
    traveler_color: str = ""


@dataclass
class TravelerStatistics:
    traveler_key: str
    ratings: list[int] = field(default_factory=list)
    mean: float = 0.0
    standard_deviation: float = 0.0          # population std
    rating_count: int = 0


@dataclass
class NormalizationResult:
    standardized_preferences: list[StandardizedPreference] = field(default_factory=list)
    traveler_statistics: dict[str, TravelerStatistics] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def traveler_keys(self) -> list[str]:
        return list(self.traveler_statistics)
