"""
modules/planning/time_constraints.py
--------------------------------------
Time Constraint Processor.

Modes:
  fixed — start and end dates set, auto-calculate off:
          total hours = inclusive day count × daily hours
  auto  — anything else; the trip length follows from the route.

Rough estimates (before legs are known) charge ROUGH_HOP_HOURS per hop
between clusters; the precise check in trim_route_to_time_budget() uses the
real route time supplied by the caller.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

import tripweave.config as config
from tripweave.schemas.route import DestinationCluster, TimeConstraints
from tripweave.schemas.trip import TripWindow

logger = logging.getLogger(__name__)


@dataclass
class TimeValidation:
    valid: bool
    required_hours: float = 0.0
    required_days: int = 0
    available_hours: Optional[float] = None
    issues: list[str] = field(default_factory=list)


def process_time_constraints(window: TripWindow) -> TimeConstraints:
    daily = window.daily_hours if window.daily_hours is not None else config.DAILY_HOURS

    if window.start_date is None or window.end_date is None or window.auto_calculate:
        return TimeConstraints(
            mode="auto",
            start_date=window.start_date,
            end_date=window.end_date,
            daily_hours=daily,
        )

    days = (window.end_date - window.start_date).days + 1
    return TimeConstraints(
        mode="fixed",
        start_date=window.start_date,
        end_date=window.end_date,
        daily_hours=daily,
        total_available_hours=max(0, days) * daily,
    )


def estimate_required_hours(clusters: Sequence[DestinationCluster]) -> float:
    """Stay time of every cluster plus a rough allowance per hop."""
    if not clusters:
        return 0.0
    return sum(c.total_stay_hours for c in clusters) + config.ROUGH_HOP_HOURS * (len(clusters) - 1)


def validate_time_constraints(
    clusters: Sequence[DestinationCluster],
    constraints: TimeConstraints,
) -> TimeValidation:
    required = estimate_required_hours(clusters)
    daily = constraints.daily_hours or config.DAILY_HOURS
    result = TimeValidation(
        valid=True,
        required_hours=required,
        required_days=math.ceil(required / daily) if required > 0 else 0,
        available_hours=constraints.total_available_hours,
    )

    if constraints.is_fixed and required > constraints.total_available_hours:
        result.valid = False
        result.issues.append(
            f"Trip requires {required:.1f} hours but only "
            f"{constraints.total_available_hours:.1f} hours are available"
        )
    return result


def filter_clusters_for_time(
    clusters: Sequence[DestinationCluster],
    available_hours: float,
) -> tuple[list[DestinationCluster], list[DestinationCluster]]:
    """
    Greedy pre-filter: most desirable clusters first, each charged its stay
    time plus a rough hop.  Returns (kept, removed).
    """
    kept: list[DestinationCluster] = []
    removed: list[DestinationCluster] = []
    used = 0.0

    for cluster in sorted(clusters, key=lambda c: c.desirability, reverse=True):
        cost = cluster.total_stay_hours + (config.ROUGH_HOP_HOURS if kept else 0.0)
        if used + cost <= available_hours:
            kept.append(cluster)
            used += cost
        else:
            removed.append(cluster)

    if removed:
        logger.info(
            "Time filter kept %d of %d cluster(s) within %.1f h",
            len(kept), len(clusters), available_hours,
        )
    return kept, removed


def trim_route_to_time_budget(
    route: Sequence[DestinationCluster],
    available_hours: float,
    route_hours: Callable[[list[DestinationCluster]], float],
) -> tuple[list[DestinationCluster], list[DestinationCluster]]:
    """
    Drop the least desirable clusters until `route_hours(route)` fits.

    The order of the remaining clusters is preserved.  Returns
    (trimmed route, removed clusters in removal order).
    """
    kept = list(route)
    removed: list[DestinationCluster] = []

    while kept and route_hours(kept) > available_hours:
        worst = min(kept, key=lambda c: c.desirability)
        kept.remove(worst)
        removed.append(worst)

    return kept, removed


def suggest_end_date(start_date: date, required_hours: float, daily_hours: float = config.DAILY_HOURS) -> date:
    """Last day of an auto-mode trip starting on *start_date*."""
    days = max(1, math.ceil(required_hours / daily_hours)) if daily_hours > 0 else 1
    return start_date + timedelta(days=days - 1)
