"""
main.py
--------
tripweave pipeline entry point.
Orchestrates every stage of group trip planning:
  Stage 0: Input validation            (halts on errors)
  Stage 1: Preference normalization    (per-traveler z-scores)
  Stage 2: Geographic clustering       (50 km seed-order radius)
  Stage 3: Time constraints            (fixed / auto)
  Stage 4: Route optimization          (multi-strategy + 2-opt)
  Stage 5: Linear itinerary            (visits + legs)
  Stage 6: Multi-day schedule          (days, meals, lodging, statistics)

Each stage's wall time is written as a PERFORMANCE event through the
StructuredLogger.  One DistanceCache is shared by every stage of a run; a
fresh one is built per run unless the caller injects one.
"""

from __future__ import annotations
import logging
import random
import time as _time_mod
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

# ── Schemas ────────────────────────────────────────────────────────────────────
from tripweave.schemas.itinerary import LinearItinerary, RouteGenerationConfig
from tripweave.schemas.preferences import NormalizationResult
from tripweave.schemas.route import (
    ClusteringConfig,
    ClusteringResult,
    OptimizationConfig,
    OptimizationResult,
    TimeConstraints,
    TransportConfig,
)
from tripweave.schemas.schedule import DailyScheduleConfig, MultiDayItinerary
from tripweave.schemas.trip import TripInput

# ── Modules ────────────────────────────────────────────────────────────────────
from tripweave.modules.observability.logger import StructuredLogger
from tripweave.modules.planning.fairness import analyze_fairness_distribution, calculate_fairness
from tripweave.modules.planning.itinerary_builder import generate_linear_itinerary
from tripweave.modules.planning.route_optimizer import RouteOptimizer
from tripweave.modules.planning.time_constraints import (
    TimeValidation,
    process_time_constraints,
    suggest_end_date,
    validate_time_constraints,
)
from tripweave.modules.preprocessing.clustering import cluster_destinations
from tripweave.modules.preprocessing.normalizer import normalize_preferences
from tripweave.modules.scheduling.multi_day import build_multi_day_itinerary
from tripweave.modules.tool_usage.distance_tool import DistanceCache, DistanceTool
from tripweave.modules.tool_usage.transport_tool import transport_stats
from tripweave.modules.validation import ValidationResult, validate_trip_input

logger = logging.getLogger(__name__)

_perf_logger = StructuredLogger()


@dataclass
class PipelineOptions:
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    optimization: OptimizationConfig = field(default_factory=OptimizationConfig)
    generation: RouteGenerationConfig = field(default_factory=RouteGenerationConfig)
    schedule: DailyScheduleConfig = field(default_factory=DailyScheduleConfig)
    merge_days: bool = True
    # first day for auto-mode trips without a start date (None → today)
    default_start_date: Optional[date] = None


@dataclass
class PlanningResult:
    success: bool
    run_id: str
    validation: ValidationResult
    normalization: Optional[NormalizationResult] = None
    clustering: Optional[ClusteringResult] = None
    time_constraints: Optional[TimeConstraints] = None
    time_validation: Optional[TimeValidation] = None
    optimization: Optional[OptimizationResult] = None
    linear_itinerary: Optional[LinearItinerary] = None
    multi_day_itinerary: Optional[MultiDayItinerary] = None
    summary: dict = field(default_factory=dict)
    fairness_analysis: dict = field(default_factory=dict)
    transport_analysis: dict = field(default_factory=dict)
    schedule_analysis: dict = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _log_perf(events: StructuredLogger, run_id: str, stage: str, t0: float, **extra) -> None:
    payload = {"stage": stage, "duration_ms": round((_time_mod.perf_counter() - t0) * 1000, 3)}
    payload.update(extra)
    events.log(run_id, "PERFORMANCE", payload)


def run_pipeline(
    trip: TripInput,
    *,
    options: Optional[PipelineOptions] = None,
    distance_cache: Optional[DistanceCache] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    run_id: Optional[str] = None,
    event_logger: Optional[StructuredLogger] = None,
) -> PlanningResult:
    """
    Plan a group trip end to end.

    Args:
        trip:           Input snapshot (destinations, ratings, window).
        options:        Per-run tuning; defaults come from config.py.
        distance_cache: Shared cache; a fresh one per run when None.
        rng:            Randomness for exploration routes; wins over `seed`.
        seed:           Seed for a new random.Random when `rng` is None.

    Returns:
        PlanningResult.  Input errors give success=False and stop before
        clustering; nothing is raised for bad input.
    """
    options = options or PipelineOptions()
    run_id = run_id or f"run_{uuid.uuid4().hex[:12]}"
    events = event_logger or _perf_logger
    cache = distance_cache if distance_cache is not None else DistanceCache()
    distance_tool = DistanceTool(cache)
    rng = rng if rng is not None else random.Random(seed)
    t_run = _time_mod.perf_counter()

    events.log(run_id, "PIPELINE_START", {
        "trip_id": trip.trip_id,
        "destinations": len(trip.destinations),
        "preferences": len(trip.preferences),
    })

    # ── Stage 0: Validation ────────────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    validation = validate_trip_input(trip)
    _log_perf(events, run_id, "validation", t0, valid=validation.valid)
    result = PlanningResult(success=False, run_id=run_id, validation=validation)
    result.warnings += validation.warnings

    if not validation.valid:
        result.errors = list(validation.errors)
        logger.warning("Trip %s rejected: %s", trip.trip_id, "; ".join(validation.errors))
        events.log(run_id, "PIPELINE_REJECTED", {"errors": validation.error_codes})
        return result

    traveler_keys = trip.all_traveler_keys()

    # ── Stage 1: Normalization ─────────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    result.normalization = normalize_preferences(trip.preferences)
    prefs = result.normalization.standardized_preferences
    result.warnings += result.normalization.warnings
    _log_perf(events, run_id, "normalization", t0, travelers=len(result.normalization.traveler_statistics))

    # ── Stage 2: Clustering ────────────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    result.clustering = cluster_destinations(trip.destinations, prefs, options.clustering, distance_tool)
    _log_perf(events, run_id, "clustering", t0, clusters=result.clustering.total_clusters)

    # ── Stage 3: Time constraints ──────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    result.time_constraints = process_time_constraints(trip.window)
    result.time_validation = validate_time_constraints(result.clustering.clusters, result.time_constraints)
    result.warnings += result.time_validation.issues
    _log_perf(events, run_id, "time_constraints", t0, mode=result.time_constraints.mode)

    # ── Stage 4: Route optimization ────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    optimizer = RouteOptimizer(
        distance_tool=distance_tool,
        transport_config=options.transport,
        optimization_config=options.optimization,
        rng=rng,
    )
    result.optimization = optimizer.optimize(
        result.clustering.clusters, prefs, trip.departure, trip.return_location,
        result.time_constraints, traveler_keys,
    )
    best = result.optimization.best_solution
    result.warnings += best.warnings + best.issues
    _log_perf(
        events, run_id, "route_optimization", t0,
        iterations=result.optimization.iterations_performed,
        early_termination=result.optimization.early_termination,
    )

    # ── Stage 5: Linear itinerary ──────────────────────────────────────────
    start_date = trip.window.start_date or options.default_start_date or date.today()
    t0 = _time_mod.perf_counter()
    result.linear_itinerary = generate_linear_itinerary(
        trip.trip_id, best, prefs, trip.departure, trip.return_location, start_date,
        result.time_constraints,
        distance_tool=distance_tool,
        transport_config=options.transport,
        generation_config=options.generation,
    )
    result.warnings += [f"{w.code}: {w.message}" for w in result.linear_itinerary.validation.warnings]
    result.warnings += [f"{e.code}: {e.message}" for e in result.linear_itinerary.validation.errors]
    _log_perf(events, run_id, "linear_itinerary", t0, visits=len(result.linear_itinerary.visits))

    # ── Stage 6: Multi-day schedule ────────────────────────────────────────
    t0 = _time_mod.perf_counter()
    result.multi_day_itinerary = build_multi_day_itinerary(
        result.linear_itinerary, start_date, options.schedule, distance_tool, options.merge_days
    )
    result.warnings += result.multi_day_itinerary.validation.overall_warnings
    result.warnings += result.multi_day_itinerary.validation.overall_errors
    _log_perf(events, run_id, "multi_day", t0, days=result.multi_day_itinerary.total_days)

    # ── Analyses & summary ─────────────────────────────────────────────────
    gini = calculate_fairness(best.clusters, prefs, traveler_keys)
    result.fairness_analysis = analyze_fairness_distribution(gini)
    result.transport_analysis = _transport_analysis(result.linear_itinerary)
    result.schedule_analysis = _schedule_analysis(result.multi_day_itinerary)
    result.summary = _summary(result, start_date)
    result.success = True

    total_ms = round((_time_mod.perf_counter() - t_run) * 1000, 3)
    events.log(run_id, "PIPELINE_COMPLETE", {
        "duration_ms": total_ms,
        "cache": cache.stats(),
        "days": result.multi_day_itinerary.total_days,
    })
    logger.info(
        "Trip %s planned in %.1f ms: %d destination(s) over %d day(s)",
        trip.trip_id, total_ms, len(result.linear_itinerary.visits),
        result.multi_day_itinerary.total_days,
    )
    return result


# ── Result helpers ─────────────────────────────────────────────────────────────

def _transport_analysis(itinerary: LinearItinerary) -> dict:
    stats = transport_stats(itinerary.segments)
    return {
        "segments": {
            "walking": stats.walking_segments,
            "driving": stats.driving_segments,
            "flying": stats.flying_segments,
        },
        "distance_km": {
            "walking": round(stats.walking_distance_km, 2),
            "driving": round(stats.driving_distance_km, 2),
            "flying": round(stats.flying_distance_km, 2),
        },
        "mode_changes": stats.mode_changes,
        "segment_warnings": sorted({w for s in itinerary.segments for w in s.warnings}),
    }


def _schedule_analysis(multi_day: MultiDayItinerary) -> dict:
    pace = {"relaxed": 0, "moderate": 0, "packed": 0}
    for day in multi_day.day_schedules:
        pace[day.summary.pace_rating] += 1
    return {
        "pace_distribution": pace,
        "meals_per_day": {d.day_number: [m.type for m in d.meals] for d in multi_day.day_schedules},
        "average_utilization": (
            sum(d.summary.utilization_rate for d in multi_day.day_schedules) / multi_day.total_days
            if multi_day.total_days else 0.0
        ),
    }


def _summary(result: PlanningResult, start_date: date) -> dict:
    best = result.optimization.best_solution
    stats = result.multi_day_itinerary.statistics
    summary = {
        "total_destinations": len(result.linear_itinerary.visits),
        "total_clusters": len(best.clusters),
        "total_days": result.multi_day_itinerary.total_days,
        "total_distance_km": round(stats.total_distance_km, 2),
        "fairness_score": round(best.fairness_score, 4),
        "composite_score": round(best.composite_score, 4),
        "feasible": best.feasible,
        "strategy": best.strategy.value,
        "removed_cluster_ids": list(best.removed_cluster_ids),
        "time_mode": result.time_constraints.mode,
    }
    if not result.time_constraints.is_fixed:
        summary["suggested_end_date"] = suggest_end_date(
            start_date,
            result.time_validation.required_hours,
            result.time_constraints.daily_hours,
        ).isoformat()
    return summary
