"""
api/routes/optimize.py
-----------------------
POST /v1/optimize/route

Runs the full planning pipeline for one trip and returns the optimized
route, the day-by-day schedule and the analyses as JSON.  Nothing is
persisted; each request gets its own DistanceCache.
"""

from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from tripweave.main import PlanningResult, run_pipeline
from tripweave.schemas.itinerary import LinearItinerary
from tripweave.schemas.route import RouteSolution
from tripweave.schemas.schedule import DaySchedule, MultiDayItinerary
from tripweave.schemas.trip import Destination, Location, RawPreference, TripInput, TripWindow

router = APIRouter()


# ── Request schemas ────────────────────────────────────────────────────────────

class LocationIn(BaseModel):
    id: str
    latitude: float
    longitude: float
    name: str = ""
    address: Optional[str] = None


class DestinationIn(BaseModel):
    id: str
    name: str = ""
    latitude: float
    longitude: float
    address: Optional[str] = None


class PreferenceIn(BaseModel):
    traveler_key: str = Field("", description="User id or guest-session id")
    destination_id: str
    score: int = Field(..., description="1–5 interest rating")
    preferred_duration_hours: Optional[float] = None
    traveler_name: str = ""
    traveler_color: str = ""


class OptimizeRequest(BaseModel):
    trip_id: str = ""
    destinations: list[DestinationIn] = Field(default_factory=list)
    preferences: list[PreferenceIn] = Field(default_factory=list)
    departure: Optional[LocationIn] = None
    return_location: Optional[LocationIn] = None
    start_date: Optional[str] = Field(None, description="ISO-8601 date YYYY-MM-DD")
    end_date:   Optional[str] = Field(None, description="ISO-8601 date YYYY-MM-DD")
    auto_calculate: bool = False
    daily_hours: Optional[float] = Field(None, gt=0)
    traveler_keys: list[str] = Field(default_factory=list)
    seed: Optional[int] = Field(None, description="Seed for reproducible exploration routes")


def _parse_date(value: Optional[str], name: str) -> Optional[date_type]:
    if value is None or value == "":
        return None
    try:
        return date_type.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid {name}: {exc}") from exc


def _location(loc: Optional[LocationIn]) -> Optional[Location]:
    if loc is None:
        return None
    return Location(loc.id, loc.latitude, loc.longitude, loc.name, loc.address)


def _to_trip_input(req: OptimizeRequest) -> TripInput:
    return TripInput(
        trip_id=req.trip_id,
        destinations=[
            Destination(d.id, d.name, d.latitude, d.longitude, d.address) for d in req.destinations
        ],
        preferences=[
            RawPreference(
                traveler_key=p.traveler_key,
                destination_id=p.destination_id,
                score=p.score,
                preferred_duration_hours=p.preferred_duration_hours,
                traveler_name=p.traveler_name,
                traveler_color=p.traveler_color,
            )
            for p in req.preferences
        ],
        departure=_location(req.departure),
        return_location=_location(req.return_location),
        window=TripWindow(
            start_date=_parse_date(req.start_date, "start_date"),
            end_date=_parse_date(req.end_date, "end_date"),
            auto_calculate=req.auto_calculate,
            daily_hours=req.daily_hours,
        ),
        traveler_keys=list(req.traveler_keys),
    )


# ── Serialisers ────────────────────────────────────────────────────────────────

def _ser_dt(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat(timespec="minutes") if dt else None


def _ser_location(loc: Optional[Location]) -> Optional[dict]:
    if loc is None:
        return None
    return {"id": loc.id, "name": loc.name, "latitude": loc.latitude, "longitude": loc.longitude}


def _ser_route(sol: RouteSolution) -> dict:
    return {
        "strategy":          sol.strategy.value,
        "feasible":          sol.feasible,
        "fairness_score":    round(sol.fairness_score, 4),
        "quantity_score":    round(sol.quantity_score, 4),
        "composite_score":   round(sol.composite_score, 4),
        "total_distance_km": round(sol.total_distance_km, 2),
        "total_time_hours":  round(sol.total_time_hours, 2),
        "clusters": [
            {
                "id":              c.id,
                "name":            c.name,
                "center":          _ser_location(c.center),
                "destination_ids": c.destination_ids,
                "desirability":    round(c.desirability, 4),
            }
            for c in sol.clusters
        ],
        "segments": [
            {
                "from":           s.from_cluster.id if s.from_cluster else "departure",
                "to":             s.to_cluster.id if s.to_cluster else "return",
                "transport_mode": s.transport_mode.value,
                "distance_km":    round(s.distance_km, 2),
                "time_hours":     round(s.estimated_time_hours, 2),
            }
            for s in sol.segments
        ],
        "traveler_satisfaction": {k: round(v, 4) for k, v in sol.traveler_satisfaction.items()},
        "issues":              sol.issues,
        "warnings":            sol.warnings,
        "removed_cluster_ids": sol.removed_cluster_ids,
    }


def _ser_linear(it: LinearItinerary) -> dict:
    return {
        "start_time": _ser_dt(it.start_time),
        "end_time":   _ser_dt(it.end_time),
        "visits": [
            {
                "order":          v.visit_order,
                "destination_id": v.destination_id,
                "name":           v.destination_name,
                "cluster_id":     v.cluster_id,
                "arrival_time":   _ser_dt(v.arrival_time),
                "departure_time": _ser_dt(v.departure_time),
                "allocated_hours": v.allocated_hours,
                "wishful_travelers": [w.traveler_key for w in v.wishful_travelers],
            }
            for v in it.visits
        ],
        "segments": [
            {
                "id":             s.segment_id,
                "transport_mode": s.transport_mode.value,
                "distance_km":    round(s.distance_km, 2),
                "path":           [[p.latitude, p.longitude] for p in s.route_path],
                "warnings":       s.warnings,
            }
            for s in it.segments
        ],
        "validation": {
            "is_valid": it.validation.is_valid,
            "errors":   [e.code for e in it.validation.errors],
            "warnings": [w.code for w in it.validation.warnings],
        },
    }


def _ser_day(d: DaySchedule) -> dict:
    acc = d.accommodation
    return {
        "day_number": d.day_number,
        "date":       str(d.date),
        "start_time": _ser_dt(d.start_time),
        "end_time":   _ser_dt(d.end_time),
        "destinations": [
            {
                "destination_id": sd.visit.destination_id,
                "name":           sd.visit.destination_name,
                "arrival_time":   _ser_dt(sd.scheduled_arrival),
                "departure_time": _ser_dt(sd.scheduled_departure),
                "energy_period":  sd.energy_period,
            }
            for sd in d.destinations
        ],
        "transport": [
            {
                "from":           t.segment.from_name,
                "to":             t.segment.to_name,
                "transport_mode": t.segment.transport_mode.value,
                "distance_km":    round(t.segment.distance_km, 2),
                "departure_time": _ser_dt(t.scheduled_departure),
                "arrival_time":   _ser_dt(t.scheduled_arrival),
            }
            for t in d.transport_segments
        ],
        "meals": [
            {
                "type":       m.type,
                "start_time": _ser_dt(m.start_time),
                "end_time":   _ser_dt(m.end_time),
                "location":   _ser_location(m.location),
            }
            for m in d.meals
        ],
        "accommodation": None if acc is None else {
            "location":         _ser_location(acc.location),
            "search_radius_km": acc.search_radius_km,
            "reasoning":        acc.reasoning,
            "estimated_cost_usd": {
                tier: {"min": acc.estimated_cost_usd.band(tier).min, "max": acc.estimated_cost_usd.band(tier).max}
                for tier in ("budget", "standard", "premium")
            },
        },
        "summary": {
            "utilization_rate": round(d.summary.utilization_rate, 1),
            "pace_rating":      d.summary.pace_rating,
            "active_hours":     round(d.summary.total_active_hours, 2),
            "travel_hours":     round(d.summary.total_travel_hours, 2),
        },
        "warnings": [f"{w.code}: {w.message}" for w in d.validation.warnings],
        "errors":   [f"{e.code}: {e.message}" for e in d.validation.errors],
    }


def _ser_multi_day(md: MultiDayItinerary) -> dict:
    s = md.statistics
    return {
        "start_date": str(md.start_date),
        "end_date":   str(md.end_date),
        "total_days": md.total_days,
        "days":       [_ser_day(d) for d in md.day_schedules],
        "statistics": {
            "total_destinations":  s.total_destinations,
            "total_distance_km":   round(s.total_distance_km, 2),
            "distance_by_mode":    {k: round(v, 2) for k, v in s.distance_by_mode.items()},
            "estimated_carbon_kg": round(s.estimated_carbon_kg, 2),
            "estimated_accommodation_cost": {
                tier: {"total": c.total, "per_night": c.per_night}
                for tier, c in s.estimated_accommodation_cost.items()
            },
        },
        "suggestions": md.validation.suggestions,
    }


def _ser_result(result: PlanningResult) -> dict:
    return {
        "success":            result.success,
        "run_id":             result.run_id,
        "summary":            result.summary,
        "route":              _ser_route(result.optimization.best_solution),
        "iterations":         result.optimization.iterations_performed,
        "early_termination":  result.optimization.early_termination,
        "linear_itinerary":   _ser_linear(result.linear_itinerary),
        "itinerary":          _ser_multi_day(result.multi_day_itinerary),
        "fairness_analysis":  result.fairness_analysis,
        "transport_analysis": result.transport_analysis,
        "schedule_analysis":  {
            **result.schedule_analysis,
            "meals_per_day": {str(k): v for k, v in result.schedule_analysis["meals_per_day"].items()},
        },
        "warnings":           result.warnings,
    }


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/route", summary="Optimize a group trip route and schedule")
def optimize_route(req: OptimizeRequest) -> dict:
    """
    Validation errors → 422 with the "CODE: message" list.
    Internal invariant violations → 500.
    """
    trip = _to_trip_input(req)
    try:
        result = run_pipeline(trip, seed=req.seed)
    except (RuntimeError, ValueError) as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    if not result.success:
        raise HTTPException(
            status_code=422,
            detail={"errors": result.errors, "warnings": result.warnings},
        )
    return _ser_result(result)
