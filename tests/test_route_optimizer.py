import random

import pytest

from tripweave.modules.planning.route_optimizer import RouteOptimizer, optimize_route
from tripweave.modules.planning.time_constraints import process_time_constraints
from tripweave.modules.preprocessing.clustering import cluster_destinations
from tripweave.modules.preprocessing.normalizer import normalize_preferences
from tripweave.schemas.route import GenerationStrategy, OptimizationConfig, TimeConstraints
from tripweave.schemas.trip import Destination, RawPreference, TripWindow

from conftest import DAY, HOME, NORTH_GROUP, PARIS_GROUP, make_preferences


def test_no_clusters_gives_empty_solution(distance_tool):
    result = optimize_route([], [], HOME, None, TimeConstraints(), distance_tool=distance_tool)

    best = result.best_solution
    assert best.strategy == GenerationStrategy.EMPTY
    assert best.fairness_score == 1.0
    assert best.composite_score == pytest.approx(0.6)
    assert result.iterations_performed == 0


def test_single_destination_is_one_iteration(distance_tool):
    dest = Destination("louvre", "Louvre", 48.8606, 2.3376)
    prefs = normalize_preferences(make_preferences([dest], ["ana"], {"ana": [5]})).standardized_preferences
    clusters = cluster_destinations([dest], prefs, distance_tool=distance_tool).clusters

    result = optimize_route(clusters, prefs, HOME, None, TimeConstraints(), distance_tool=distance_tool)

    assert result.best_solution.strategy == GenerationStrategy.SINGLE_CLUSTER
    assert result.iterations_performed == 1
    assert result.best_solution.feasible
    assert len(result.best_solution.segments) == 2


def test_two_groups_fit_the_fixed_window(two_group_trip, two_group_clusters, distance_tool, rng):
    clusters, prefs = two_group_clusters
    constraints = process_time_constraints(two_group_trip.window)

    result = RouteOptimizer(distance_tool=distance_tool, rng=rng).optimize(
        clusters, prefs, HOME, None, constraints, two_group_trip.traveler_keys
    )

    best = result.best_solution
    assert constraints.total_available_hours == 18.0
    assert best.feasible
    assert best.total_time_hours <= 18.0
    assert sorted(best.cluster_ids) == sorted(c.id for c in clusters)
    # everything fits, so every traveler is fully satisfied and 2-opt is skipped
    assert best.fairness_score == pytest.approx(1.0)
    assert result.early_termination
    assert result.iterations_performed == result.stats.candidates_generated
    assert GenerationStrategy.TWO_OPT not in {s.strategy for s in result.all_solutions}


def test_tight_budget_trims_least_desirable_cluster(two_group_trip, two_group_clusters, distance_tool, rng):
    clusters, prefs = two_group_clusters
    window = TripWindow(start_date=two_group_trip.window.start_date, end_date=two_group_trip.window.start_date,
                        daily_hours=7.0)
    constraints = process_time_constraints(window)

    result = RouteOptimizer(distance_tool=distance_tool, rng=rng).optimize(
        clusters, prefs, HOME, None, constraints, two_group_trip.traveler_keys
    )

    best = result.best_solution
    assert best.feasible
    assert best.total_time_hours <= 7.0
    trimmed = [s for s in result.all_solutions if s.removed_cluster_ids]
    assert trimmed
    for solution in trimmed:
        assert len(solution.warnings) == len(solution.removed_cluster_ids)
        assert all(w.startswith("Removed ") and w.endswith("7.0 hour time budget") for w in solution.warnings)
    assert result.iterations_performed <= OptimizationConfig().max_iterations


def test_same_seed_same_route(two_group_trip, two_group_clusters, distance_tool):
    clusters, prefs = two_group_clusters
    constraints = TimeConstraints()
    cfg = OptimizationConfig(early_termination_threshold=1.1)

    def run(seed):
        return RouteOptimizer(distance_tool=distance_tool, optimization_config=cfg, rng=random.Random(seed)).optimize(
            clusters, prefs, HOME, None, constraints
        )

    first, second = run(7), run(7)
    assert first.best_solution.cluster_ids == second.best_solution.cluster_ids
    assert [s.cluster_ids for s in first.all_solutions] == [s.cluster_ids for s in second.all_solutions]


def test_iteration_budget_caps_candidates(two_group_clusters, distance_tool, rng):
    clusters, prefs = two_group_clusters
    cfg = OptimizationConfig(max_iterations=2, early_termination_threshold=1.1)

    result = RouteOptimizer(distance_tool=distance_tool, optimization_config=cfg, rng=rng).optimize(
        clusters, prefs, HOME, None, TimeConstraints()
    )

    assert result.iterations_performed == 2
    assert result.stats.candidates_generated >= 2


def _rated(destinations, scores, durations):
    """One traveler, ana, with a score and a preferred stay per destination."""
    raw = [
        RawPreference("ana", d.id, score, hours, traveler_name="Ana")
        for d, score, hours in zip(destinations, scores, durations)
    ]
    return normalize_preferences(raw).standardized_preferences


def _one_day(daily_hours):
    return process_time_constraints(TripWindow(start_date=DAY, end_date=DAY, daily_hours=daily_hours))


def test_quantity_counts_clusters_not_destinations(distance_tool):
    prefs = _rated(PARIS_GROUP, [5, 4, 3], [2.0, 2.0, 2.0])
    clusters = cluster_destinations(PARIS_GROUP, prefs, distance_tool=distance_tool).clusters

    result = optimize_route(clusters, prefs, HOME, None, TimeConstraints(), distance_tool=distance_tool)

    assert len(clusters) == 1
    assert result.best_solution.quantity_score == pytest.approx(1 / 3)
    assert result.best_solution.composite_score == pytest.approx(0.6 + 0.4 / 3)


def test_non_empty_route_beats_fully_trimmed_candidates(distance_tool, rng):
    louvre, compiegne = PARIS_GROUP[0], NORTH_GROUP[0]
    prefs = _rated([louvre, compiegne], [5, 3], [8.0, 1.0])
    clusters = cluster_destinations([louvre, compiegne], prefs, distance_tool=distance_tool).clusters

    result = RouteOptimizer(distance_tool=distance_tool, rng=rng).optimize(
        clusters, prefs, HOME, None, _one_day(6.0), ["ana"]
    )

    # the desirability-first candidate loses both clusters to the 6 h budget
    greedy = result.all_solutions[0]
    assert greedy.strategy == GenerationStrategy.DESIRABILITY_GREEDY
    assert greedy.clusters == []
    assert greedy.fairness_score == pytest.approx(1.0)

    best = result.best_solution
    assert best.strategy == GenerationStrategy.QUANTITY_MAXIMIZING
    assert [d.id for c in best.clusters for d in c.destinations] == ["compiegne"]
    assert best.composite_score == pytest.approx(0.6 + 0.4 * 0.5)
    assert result.early_termination
    assert result.iterations_performed == result.stats.candidates_generated > 1


def test_quantity_route_prefers_short_average_stays(distance_tool, rng):
    destinations = PARIS_GROUP + NORTH_GROUP[:1]
    # Paris: 3 × 1.5 h = 4.5 h in total, Compiegne: 1 × 3 h
    prefs = _rated(destinations, [5, 4, 4, 3], [1.5, 1.5, 1.5, 3.0])
    clusters = cluster_destinations(destinations, prefs, distance_tool=distance_tool).clusters
    paris = next(c for c in clusters if "louvre" in c.destination_ids)

    result = RouteOptimizer(distance_tool=distance_tool, rng=rng).optimize(
        clusters, prefs, HOME, None, _one_day(7.0), ["ana"]
    )

    quantity = next(s for s in result.all_solutions if s.strategy == GenerationStrategy.QUANTITY_MAXIMIZING)
    assert quantity.cluster_ids == [paris.id]
    assert quantity.removed_cluster_ids == []
    assert quantity.quantity_score == pytest.approx(1 / 4)


def test_trimming_warning_names_every_removed_destination(distance_tool):
    prefs = _rated(PARIS_GROUP, [5, 4, 3], [3.0, 3.0, 3.0])
    clusters = cluster_destinations(PARIS_GROUP, prefs, distance_tool=distance_tool).clusters

    result = optimize_route(clusters, prefs, HOME, None, _one_day(6.0), distance_tool=distance_tool)

    best = result.best_solution
    assert best.removed_cluster_ids == [clusters[0].id]
    assert len(best.warnings) == 1
    warning = best.warnings[0]
    for name in ("Louvre", "Musee d'Orsay", "Eiffel Tower"):
        assert name in warning
    assert warning.endswith("6.0 hour time budget")
