"""
modules/planning/fairness.py
------------------------------
Fairness Evaluator: how evenly a route satisfies the group.

Per traveler:
  mass(p)       = max(0, standardized score of p)
  satisfaction  = Σ mass over preferences inside the route / Σ mass overall
                  (0 when the traveler has no positive mass)

Group (Gini over satisfactions, ascending ranks 1..n):
  gini     = 2·Σ(rank·s) / (n·Σs) − (n + 1)/n      clamped to [-1, 1]
  fairness = clamp(1 − |gini|, 0, 1)

Σs == 0 → gini 0; at most one traveler → fairness 1.
"""

from __future__ import annotations
import logging
from typing import Iterable, Optional, Sequence

from tripweave.schemas.preferences import StandardizedPreference
from tripweave.schemas.route import DestinationCluster, GiniResult, TravelerSatisfaction

logger = logging.getLogger(__name__)

# ── Analysis thresholds ──────────────────────────────────────────────────────
_BALANCED_FAIRNESS:  float = 0.7
_LOW_DISPARITY:      float = 0.8
_MEDIUM_DISPARITY:   float = 0.6
_WIDE_GAP:           float = 0.2    # satisfaction points between best and worst off
_MIN_SELECTED_RATIO: float = 0.3
_POOR_FAIRNESS:      float = 0.5


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def gini_coefficient(values: Sequence[float]) -> float:
    n = len(values)
    total = sum(values)
    if n <= 1 or total == 0:
        return 0.0
    ranked = sorted(values)
    weighted = sum((i + 1) * v for i, v in enumerate(ranked))
    gini = 2 * weighted / (n * total) - (n + 1) / n
    return _clamp(gini, -1.0, 1.0)


def calculate_fairness(
    route_clusters: Iterable[DestinationCluster],
    preferences: Sequence[StandardizedPreference],
    traveler_keys: Optional[Sequence[str]] = None,
) -> GiniResult:
    """Satisfaction per traveler and the Gini-based fairness of a route."""
    included = {d_id for c in route_clusters for d_id in c.destination_ids}

    keys: dict[str, None] = dict.fromkeys(traveler_keys or [])
    names: dict[str, str] = {}
    for p in preferences:
        keys.setdefault(p.traveler_key, None)
        if p.traveler_name:
            names.setdefault(p.traveler_key, p.traveler_name)

    satisfactions: list[TravelerSatisfaction] = []
    for key in keys:
        own = [p for p in preferences if p.traveler_key == key]
        total_mass = sum(max(0.0, p.standardized_score) for p in own)
        included_mass = sum(
            max(0.0, p.standardized_score) for p in own if p.destination_id in included
        )
        satisfactions.append(
            TravelerSatisfaction(
                traveler_key=key,
                traveler_name=names.get(key, key),
                satisfaction_score=included_mass / total_mass if total_mass > 0 else 0.0,
                selected_destinations=sum(1 for p in own if p.destination_id in included),
                total_destinations=len(own),
            )
        )

    result = GiniResult(traveler_satisfactions=satisfactions)
    if satisfactions:
        result.lowest = min(satisfactions, key=lambda s: s.satisfaction_score)
        result.highest = max(satisfactions, key=lambda s: s.satisfaction_score)

    if len(satisfactions) <= 1:
        result.gini_coefficient = 0.0
        result.fairness_score = 1.0
        return result

    result.gini_coefficient = gini_coefficient([s.satisfaction_score for s in satisfactions])
    result.fairness_score = _clamp(1.0 - abs(result.gini_coefficient), 0.0, 1.0)
    return result


def analyze_fairness_distribution(result: GiniResult) -> dict:
    """Human-readable reading of a GiniResult with improvement hints."""
    fairness = result.fairness_score
    if fairness >= _LOW_DISPARITY:
        disparity = "low"
    elif fairness >= _MEDIUM_DISPARITY:
        disparity = "medium"
    else:
        disparity = "high"

    gap = 0.0
    if result.lowest is not None and result.highest is not None:
        gap = result.highest.satisfaction_score - result.lowest.satisfaction_score

    recommendations: list[str] = []
    if gap > _WIDE_GAP and result.lowest is not None:
        recommendations.append(
            f"Consider adding more destinations preferred by {result.lowest.traveler_name}"
        )
    for s in result.traveler_satisfactions:
        if s.total_destinations and s.selected_destinations / s.total_destinations < _MIN_SELECTED_RATIO:
            recommendations.append(
                f"{s.traveler_name} has only {s.selected_destinations} of "
                f"{s.total_destinations} rated destinations in the route"
            )
    if fairness < _POOR_FAIRNESS:
        recommendations.append("The route strongly favors some travelers over others")
        recommendations.append("Consider splitting the group for part of the trip")

    return {
        "fairness_score": fairness,
        "gini_coefficient": result.gini_coefficient,
        "is_balanced": fairness >= _BALANCED_FAIRNESS,
        "disparity_level": disparity,
        "satisfaction_gap": gap,
        "most_satisfied": result.highest.traveler_name if result.highest else None,
        "least_satisfied": result.lowest.traveler_name if result.lowest else None,
        "recommendations": recommendations,
    }
