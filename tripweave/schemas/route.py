"""
schemas/route.py
----------------
Clusters, route segments and route solutions produced by the clustering
engine and the Route/TSP optimization engine, plus the option dataclasses
that drive them.

Defaults for every option come from config.py.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

import tripweave.config as config
from tripweave.schemas.trip import Destination, Location


class TransportMode(str, Enum):
    WALKING = "walking"
    DRIVING = "driving"
    FLYING = "flying"


class GenerationStrategy(str, Enum):
    """Closed set of candidate-route generators."""
    DESIRABILITY_GREEDY = "desirability_greedy"
    QUANTITY_MAXIMIZING = "quantity_maximizing"
    NEAREST_NEIGHBOR = "nearest_neighbor"
    RANDOM_EXPLORATION = "random_exploration"
    TWO_OPT = "two_opt"
    SINGLE_CLUSTER = "single_cluster"
    EMPTY = "empty"


# ── Options ────────────────────────────────────────────────────────────────────

@dataclass
class ClusteringConfig:
    max_cluster_radius_km: float = config.MAX_CLUSTER_RADIUS_KM
    default_stay_hours: float = config.DEFAULT_STAY_HOURS


@dataclass
class TransportConfig:
    walking_speed_kmh: float = config.WALKING_SPEED_KMH
    walking_max_distance_km: float = config.WALKING_MAX_DISTANCE_KM
    walking_time_buffer: float = config.WALKING_TIME_BUFFER
    driving_speed_kmh: float = config.DRIVING_SPEED_KMH
    driving_max_distance_km: float = config.DRIVING_MAX_DISTANCE_KM
    driving_time_buffer: float = config.DRIVING_TIME_BUFFER
    flying_speed_kmh: float = config.FLYING_SPEED_KMH
    airport_overhead_hours: float = config.AIRPORT_OVERHEAD_HOURS


@dataclass
class OptimizationConfig:
    max_iterations: int = config.MAX_ITERATIONS
    fairness_weight: float = config.FAIRNESS_WEIGHT
    quantity_weight: float = config.QUANTITY_WEIGHT
    early_termination_threshold: float = config.EARLY_TERMINATION_THRESHOLD
    random_explorations: int = config.RANDOM_EXPLORATIONS
    top_candidates_to_improve: int = config.TOP_CANDIDATES_TO_IMPROVE
    greedy_start_clusters: int = config.GREEDY_START_CLUSTERS


# ── Clusters ───────────────────────────────────────────────────────────────────

@dataclass
class DestinationCluster:
    """
    A geographically coherent group of destinations, routed as one stop.

    Attributes:
        desirability:        mean standardized score over every member preference.
        average_stay_time:   mean preferred duration (hours) over member preferences.
        member_preferences:  traveler key → summed standardized score in the cluster.
    """
    id: str
    destinations: list[Destination] = field(default_factory=list)
    center: Location = field(default_factory=lambda: Location("", 0.0, 0.0))
    desirability: float = 0.0
    average_stay_time: float = config.DEFAULT_STAY_HOURS
    member_preferences: dict[str, float] = field(default_factory=dict)
    name: str = ""

    @property
    def representative_location(self) -> Location:
        return self.center

    @property
    def destination_ids(self) -> list[str]:
        return [d.id for d in self.destinations]

    @property
    def total_stay_hours(self) -> float:
        """Stay time for the whole cluster (average stay × member count)."""
        return self.average_stay_time * len(self.destinations)


@dataclass
class ClusteringResult:
    clusters: list[DestinationCluster] = field(default_factory=list)
    isolated_destination_ids: list[str] = field(default_factory=list)
    average_cluster_size: float = 0.0
    distance_matrix: dict[str, dict[str, float]] = field(default_factory=dict, repr=False)

    @property
    def total_clusters(self) -> int:
        return len(self.clusters)


# ── Time constraints ───────────────────────────────────────────────────────────

@dataclass
class TimeConstraints:
    mode: str = "auto"                       # "fixed" | "auto"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    daily_hours: float = config.DAILY_HOURS
    total_available_hours: Optional[float] = None   # fixed mode only

    @property
    def is_fixed(self) -> bool:
        return self.mode == "fixed" and self.total_available_hours is not None


# ── Route ──────────────────────────────────────────────────────────────────────

@dataclass
class RouteSegment:
    """One leg. from_cluster None → departure point; to_cluster None → return point."""
    from_cluster: Optional[DestinationCluster]
    to_cluster: Optional[DestinationCluster]
    distance_km: float
    transport_mode: TransportMode
    estimated_time_hours: float


@dataclass
class TravelerSatisfaction:
    traveler_key: str
    traveler_name: str = ""
    satisfaction_score: float = 0.0          # included mass / total mass, in [0, 1]
    selected_destinations: int = 0
    total_destinations: int = 0


@dataclass
class GiniResult:
    gini_coefficient: float = 0.0
    fairness_score: float = 1.0
    traveler_satisfactions: list[TravelerSatisfaction] = field(default_factory=list)
    lowest: Optional[TravelerSatisfaction] = None
    highest: Optional[TravelerSatisfaction] = None


@dataclass
class RouteSolution:
    clusters: list[DestinationCluster] = field(default_factory=list)
    segments: list[RouteSegment] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_time_hours: float = 0.0
    fairness_score: float = 1.0
    quantity_score: float = 0.0
    composite_score: float = 0.0
    traveler_satisfaction: dict[str, float] = field(default_factory=dict)
    feasible: bool = True
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)       # trimming reports
    removed_cluster_ids: list[str] = field(default_factory=list)
    strategy: GenerationStrategy = GenerationStrategy.EMPTY

    @property
    def cluster_ids(self) -> list[str]:
        return [c.id for c in self.clusters]


@dataclass
class TwoOptResult:
    improved: bool = False
    original_distance_km: float = 0.0
    new_distance_km: float = 0.0
    improvement_percent: float = 0.0
    swaps_performed: int = 0


@dataclass
class AlgorithmStats:
    candidates_generated: int = 0
    feasible_solutions: int = 0
    infeasible_solutions: int = 0
    average_fairness: float = 0.0
    best_fairness: float = 0.0
    average_quantity: float = 0.0
    best_quantity: float = 0.0
    two_opt_improvements: int = 0
    cache_hits: int = 0


@dataclass
class OptimizationResult:
    best_solution: RouteSolution
    all_solutions: list[RouteSolution] = field(default_factory=list)
    execution_time_ms: float = 0.0
    iterations_performed: int = 0
    early_termination: bool = False
    stats: AlgorithmStats = field(default_factory=AlgorithmStats)
