import pytest

from tripweave.modules.tool_usage.distance_tool import (
    DistanceCache,
    DistanceTool,
    haversine_km,
    spherical_centroid,
)
from tripweave.modules.tool_usage.transport_tool import (
    TransportCalculator,
    determine_transport_mode,
    estimate_travel_time,
    resolve_leg,
    transport_stats,
    validate_route_feasibility,
)
from tripweave.schemas.route import RouteSegment, TransportConfig, TransportMode
from tripweave.schemas.trip import Location


def test_mode_thresholds():
    assert determine_transport_mode(2.0) == TransportMode.WALKING
    assert determine_transport_mode(2.0001) == TransportMode.DRIVING
    assert determine_transport_mode(300.0) == TransportMode.DRIVING
    assert determine_transport_mode(300.1) == TransportMode.FLYING


def test_travel_time_per_mode():
    assert estimate_travel_time(1.0, TransportMode.WALKING) == pytest.approx(1.0 / 5 * 1.1)
    assert estimate_travel_time(120.0, TransportMode.DRIVING) == pytest.approx(2.4)
    assert estimate_travel_time(1000.0, TransportMode.FLYING) == pytest.approx(5.0)


def test_unknown_mode_raises():
    with pytest.raises(ValueError, match="ERROR_UNKNOWN_TRANSPORT_MODE"):
        estimate_travel_time(10.0, "teleport")


def test_flight_downshifts_to_drive_when_drive_is_short():
    # flights start at 150 km here, so a 200 km drive (4 h) beats 1.5 × the 3.4 h flight
    cfg = TransportConfig(driving_max_distance_km=150.0)
    mode, hours = resolve_leg(200.0, cfg)

    assert mode == TransportMode.DRIVING
    assert hours == pytest.approx(4.0)


def test_long_flight_is_kept():
    mode, hours = resolve_leg(1000.0)
    assert mode == TransportMode.FLYING
    assert hours == pytest.approx(5.0)


def test_distance_cache_hits_on_reverse_lookup():
    cache = DistanceCache()
    tool = DistanceTool(cache)
    a, b = Location("a", 48.0, 2.0), Location("b", 49.0, 2.0)

    first = tool.distance_km(a, b)
    second = tool.distance_km(b, a)

    assert first == second == pytest.approx(haversine_km(48.0, 2.0, 49.0, 2.0))
    assert cache.misses == 1 and cache.hits == 1
    assert len(cache) == 1


def test_route_metrics_has_one_more_segment_than_clusters(two_group_clusters):
    clusters, _ = two_group_clusters
    home = Location("home", 48.8566, 2.3522)

    metrics = TransportCalculator().route_metrics(home, clusters)

    assert len(metrics.segments) == len(clusters) + 1
    assert metrics.segments[0].from_cluster is None
    assert metrics.segments[-1].to_cluster is None
    stays = sum(c.total_stay_hours for c in clusters)
    travel = sum(s.estimated_time_hours for s in metrics.segments)
    assert metrics.total_time_hours == pytest.approx(stays + travel)


def test_feasibility_messages():
    ok, issues = validate_route_feasibility(
        20.0, 18.0, {TransportMode.WALKING, TransportMode.DRIVING, TransportMode.FLYING}
    )
    assert not ok
    assert issues[0] == "Route requires 20.0 hours but only 18.0 hours available"
    assert issues[1] == "Route involves multiple transport mode changes including flights"

    assert validate_route_feasibility(5.0, None, {TransportMode.FLYING, TransportMode.DRIVING}) == (True, [])


def test_transport_stats_counts_modes_and_changes():
    segs = [
        RouteSegment(None, None, 1.0, TransportMode.WALKING, 0.2),
        RouteSegment(None, None, 80.0, TransportMode.DRIVING, 1.6),
        RouteSegment(None, None, 90.0, TransportMode.DRIVING, 1.8),
        RouteSegment(None, None, 1.5, TransportMode.WALKING, 0.3),
    ]
    stats = transport_stats(segs)

    assert stats.walking_segments == 2
    assert stats.driving_distance_km == pytest.approx(170.0)
    assert stats.mode_changes == 2


def test_distance_matrix_is_symmetric_with_zero_diagonal(distance_tool):
    stops = [Location("a", 48.0, 2.0), Location("b", 48.5, 2.5), Location("c", 49.0, 2.0)]

    matrix = distance_tool.distance_matrix(stops)

    for i in range(3):
        assert matrix[i][i] == 0.0
        for j in range(3):
            assert matrix[i][j] == matrix[j][i]
    assert distance_tool.calculate(48.0, 2.0, 49.0, 2.0) == pytest.approx(matrix[0][2])


def test_cache_clear_resets_counters():
    cache = DistanceCache()
    DistanceTool(cache).distance_km(Location("a", 0.0, 0.0), Location("b", 0.0, 1.0))

    cache.clear()

    assert len(cache) == 0
    assert cache.stats() == {"size": 0, "hits": 0, "misses": 0, "estimated_memory_kb": 0.0}


def test_centroid_across_the_date_line_stays_on_it():
    center = spherical_centroid([Location("w", 0.0, 179.5), Location("e", 0.0, -179.5)], "c-1")

    assert center.id == "c-1"
    assert abs(center.longitude) == pytest.approx(180.0)
    assert center.latitude == pytest.approx(0.0, abs=1e-9)


def test_weighted_centroid_leans_towards_heavier_point():
    a, b = Location("a", 0.0, 10.0), Location("b", 0.0, 20.0)

    assert spherical_centroid([a, b], weights=[0.7, 0.3]).longitude == pytest.approx(13.0, abs=0.1)
    assert spherical_centroid([a, b], weights=[1.0, 1.0]).longitude == pytest.approx(15.0)
    with pytest.raises(ValueError, match="ERROR_CENTROID_WEIGHTS"):
        spherical_centroid([a, b], weights=[1.0])
