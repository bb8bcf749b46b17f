"""
modules/planning/route_optimizer.py
-------------------------------------
Route/TSP Optimization Engine: picks the order (and, under a fixed time
budget, the subset) of clusters the group travels.

Bounded multi-start heuristic, no optimality guarantee:
  1. Desirability greedy  — one candidate per top-3 cluster as first stop,
                            then nearest-neighbor.
  2. Quantity maximizing  — shortest average stays first (as many clusters as fit),
                            ordered nearest-neighbor from departure.
  3. Nearest neighbor     — from the departure point.
  4. Random exploration   — seeded shuffles, up to `max_iterations` candidates
                            in total.

Every candidate is trimmed to the budget (fixed mode), scored

  composite = 0.6 · fairness + 0.4 · quantity
  quantity  = clusters included / distinct rated destinations (floor 1)

and checked for feasibility.  Every strategy runs; when the best feasible
candidate already reaches fairness ≥ 0.95 the 2-opt pass is skipped,
otherwise the 5 best feasible candidates are polished with 2-opt.  The RNG
and the DistanceCache are injected.
"""

from __future__ import annotations
import logging
import random
import time as _time_mod
from dataclasses import dataclass
from typing import Optional, Sequence

from tripweave.modules.planning.fairness import calculate_fairness
from tripweave.modules.planning.time_constraints import trim_route_to_time_budget
from tripweave.modules.planning.tsp import (
    nearest_neighbor_route,
    random_route,
    route_with_start,
    two_opt_improvement,
)
from tripweave.modules.tool_usage.distance_tool import DistanceTool
from tripweave.modules.tool_usage.transport_tool import (
    RouteMetrics,
    TransportCalculator,
    recompute_totals,
    validate_route_feasibility,
)
from tripweave.schemas.preferences import StandardizedPreference
from tripweave.schemas.route import (
    AlgorithmStats,
    DestinationCluster,
    GenerationStrategy,
    OptimizationConfig,
    OptimizationResult,
    RouteSolution,
    TimeConstraints,
    TransportConfig,
)
from tripweave.schemas.trip import Location

logger = logging.getLogger(__name__)


@dataclass
class _RunContext:
    """Per-call inputs shared by the evaluation helpers."""
    preferences: Sequence[StandardizedPreference]
    departure: Location
    return_location: Optional[Location]
    constraints: TimeConstraints
    traveler_keys: list[str]
    rated_destinations: int


class RouteOptimizer:
    """
    Multi-strategy cluster route search.

    Usage:
        optimizer = RouteOptimizer(distance_tool=DistanceTool(cache), rng=random.Random(7))
        result = optimizer.optimize(clusters, prefs, departure, None, constraints)
    """

    def __init__(
        self,
        distance_tool: Optional[DistanceTool] = None,
        transport_config: Optional[TransportConfig] = None,
        optimization_config: Optional[OptimizationConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.distance_tool = distance_tool or DistanceTool()
        self.transport = TransportCalculator(self.distance_tool, transport_config)
        self.config = optimization_config or OptimizationConfig()
        self.rng = rng if rng is not None else random.Random()

    # ── Public API ────────────────────────────────────────────────────────

    def optimize(
        self,
        clusters: Sequence[DestinationCluster],
        preferences: Sequence[StandardizedPreference],
        departure: Location,
        return_location: Optional[Location],
        time_constraints: TimeConstraints,
        traveler_keys: Optional[Sequence[str]] = None,
    ) -> OptimizationResult:
        t0 = _time_mod.perf_counter()
        ctx = _RunContext(
            preferences=preferences,
            departure=departure,
            return_location=return_location,
            constraints=time_constraints,
            traveler_keys=list(traveler_keys or []),
            rated_destinations=max(1, len({p.destination_id for p in preferences})),
        )

        # ── Degenerate inputs ──────────────────────────────────────────────
        if not clusters:
            empty = RouteSolution(
                fairness_score=1.0,
                quantity_score=0.0,
                composite_score=self.config.fairness_weight * 1.0,
                strategy=GenerationStrategy.EMPTY,
            )
            return OptimizationResult(
                best_solution=empty,
                all_solutions=[empty],
                execution_time_ms=(_time_mod.perf_counter() - t0) * 1000,
                iterations_performed=0,
                stats=AlgorithmStats(),
            )

        if len(clusters) == 1:
            only = self._evaluate(list(clusters), GenerationStrategy.SINGLE_CLUSTER, ctx)
            return OptimizationResult(
                best_solution=only,
                all_solutions=[only],
                execution_time_ms=(_time_mod.perf_counter() - t0) * 1000,
                iterations_performed=1,
                stats=self._stats([only], two_opt_improvements=0),
            )

        # ── Candidate generation ───────────────────────────────────────────
        solutions = [
            self._evaluate(route, strategy, ctx)
            for route, strategy in self._candidate_routes(list(clusters), ctx)
        ]
        iterations = len(solutions)

        leader = self._select_best(solutions)
        early_termination = (
            leader.feasible and leader.fairness_score >= self.config.early_termination_threshold
        )
        if early_termination:
            logger.info(
                "Skipping 2-opt after %d candidate(s): best fairness %.3f (%s)",
                iterations, leader.fairness_score, leader.strategy.value,
            )

        # ── 2-opt polish ───────────────────────────────────────────────────
        two_opt_improvements = 0
        if not early_termination:
            feasible = sorted(
                (s for s in solutions if s.feasible),
                key=lambda s: s.composite_score,
                reverse=True,
            )
            for candidate in feasible[: self.config.top_candidates_to_improve]:
                new_route, report = two_opt_improvement(
                    departure, candidate.clusters, return_location, self.distance_tool
                )
                if report.improved:
                    two_opt_improvements += 1
                    solutions.append(self._evaluate(new_route, GenerationStrategy.TWO_OPT, ctx))

        best = self._select_best(solutions)
        elapsed_ms = (_time_mod.perf_counter() - t0) * 1000
        logger.info(
            "Route optimized: %d cluster(s), composite %.3f, fairness %.3f, %s, %.1f ms",
            len(best.clusters), best.composite_score, best.fairness_score,
            best.strategy.value, elapsed_ms,
        )
        return OptimizationResult(
            best_solution=best,
            all_solutions=solutions,
            execution_time_ms=elapsed_ms,
            iterations_performed=iterations,
            early_termination=early_termination,
            stats=self._stats(solutions, two_opt_improvements),
        )

    # ── Candidate generators ──────────────────────────────────────────────

    def _candidate_routes(self, clusters: list[DestinationCluster], ctx: _RunContext):
        """Yield (route, strategy) pairs, at most `max_iterations` of them."""
        budget = self.config.max_iterations
        produced = 0

        by_desirability = sorted(clusters, key=lambda c: c.desirability, reverse=True)
        for first in by_desirability[: self.config.greedy_start_clusters]:
            if produced >= budget:
                return
            produced += 1
            yield route_with_start(first, clusters, self.distance_tool), GenerationStrategy.DESIRABILITY_GREEDY

        if produced < budget:
            produced += 1
            yield self._quantity_route(clusters, ctx), GenerationStrategy.QUANTITY_MAXIMIZING

        if produced < budget:
            produced += 1
            yield (
                nearest_neighbor_route(ctx.departure, clusters, self.distance_tool),
                GenerationStrategy.NEAREST_NEIGHBOR,
            )

        for _ in range(self.config.random_explorations):
            if produced >= budget:
                return
            produced += 1
            yield random_route(clusters, self.rng), GenerationStrategy.RANDOM_EXPLORATION

    def _quantity_route(self, clusters: list[DestinationCluster], ctx: _RunContext) -> list[DestinationCluster]:
        by_stay = sorted(clusters, key=lambda c: c.average_stay_time)
        if ctx.constraints.is_fixed:
            available = ctx.constraints.total_available_hours
            picked: list[DestinationCluster] = []
            for cluster in by_stay:
                if self._measure(picked + [cluster], ctx).total_time_hours <= available:
                    picked.append(cluster)
            by_stay = picked or by_stay
        return nearest_neighbor_route(ctx.departure, by_stay, self.distance_tool)

    # ── Evaluation ────────────────────────────────────────────────────────

    def _measure(self, route: list[DestinationCluster], ctx: _RunContext) -> RouteMetrics:
        metrics = self.transport.route_metrics(ctx.departure, route, ctx.return_location)
        metrics.segments = self.transport.downshift_flights(metrics.segments)
        metrics.total_distance_km, metrics.total_time_hours = recompute_totals(metrics.segments, route)
        metrics.transport_modes = {s.transport_mode for s in metrics.segments}
        return metrics

    def _evaluate(
        self,
        route: list[DestinationCluster],
        strategy: GenerationStrategy,
        ctx: _RunContext,
    ) -> RouteSolution:
        warnings: list[str] = []
        removed: list[DestinationCluster] = []

        if ctx.constraints.is_fixed:
            available = ctx.constraints.total_available_hours
            route, removed = trim_route_to_time_budget(
                route, available, lambda r: self._measure(r, ctx).total_time_hours
            )
            for cluster in removed:
                warnings.append(
                    f"Removed {cluster.name or cluster.id} "
                    f"({', '.join(d.name or d.id for d in cluster.destinations)}) "
                    f"to fit the {available:.1f} hour time budget"
                )

        metrics = self._measure(route, ctx)
        feasible, issues = validate_route_feasibility(
            metrics.total_time_hours,
            ctx.constraints.total_available_hours if ctx.constraints.is_fixed else None,
            metrics.transport_modes,
        )

        gini = calculate_fairness(route, ctx.preferences, ctx.traveler_keys)
        quantity = min(1.0, len(route) / ctx.rated_destinations)
        composite = self.config.fairness_weight * gini.fairness_score + self.config.quantity_weight * quantity

        return RouteSolution(
            clusters=list(route),
            segments=metrics.segments,
            total_distance_km=metrics.total_distance_km,
            total_time_hours=metrics.total_time_hours,
            fairness_score=gini.fairness_score,
            quantity_score=quantity,
            composite_score=composite,
            traveler_satisfaction={
                s.traveler_key: s.satisfaction_score for s in gini.traveler_satisfactions
            },
            feasible=feasible,
            issues=issues,
            warnings=warnings,
            removed_cluster_ids=[c.id for c in removed],
            strategy=strategy,
        )

    @staticmethod
    def _select_best(solutions: list[RouteSolution]) -> RouteSolution:
        feasible = [s for s in solutions if s.feasible]
        pool = feasible or solutions
        return max(pool, key=lambda s: s.composite_score)

    def _stats(self, solutions: list[RouteSolution], two_opt_improvements: int) -> AlgorithmStats:
        feasible = [s for s in solutions if s.feasible]
        n = len(solutions)
        return AlgorithmStats(
            candidates_generated=n,
            feasible_solutions=len(feasible),
            infeasible_solutions=n - len(feasible),
            average_fairness=sum(s.fairness_score for s in solutions) / n if n else 0.0,
            best_fairness=max((s.fairness_score for s in solutions), default=0.0),
            average_quantity=sum(s.quantity_score for s in solutions) / n if n else 0.0,
            best_quantity=max((s.quantity_score for s in solutions), default=0.0),
            two_opt_improvements=two_opt_improvements,
            cache_hits=self.distance_tool.cache.hits,
        )


def optimize_route(
    clusters: Sequence[DestinationCluster],
    preferences: Sequence[StandardizedPreference],
    departure: Location,
    return_location: Optional[Location],
    time_constraints: TimeConstraints,
    *,
    distance_tool: Optional[DistanceTool] = None,
    transport_config: Optional[TransportConfig] = None,
    optimization_config: Optional[OptimizationConfig] = None,
    rng: Optional[random.Random] = None,
    traveler_keys: Optional[Sequence[str]] = None,
) -> OptimizationResult:
    """Functional wrapper around RouteOptimizer.optimize()."""
    optimizer = RouteOptimizer(
        distance_tool=distance_tool,
        transport_config=transport_config,
        optimization_config=optimization_config,
        rng=rng,
    )
    return optimizer.optimize(
        clusters, preferences, departure, return_location, time_constraints, traveler_keys
    )
