from fastapi.testclient import TestClient

from tripweave.api.server import app

client = TestClient(app)


def _payload():
    return {
        "trip_id": "paris-weekend",
        "destinations": [
            {"id": "louvre", "name": "Louvre", "latitude": 48.8606, "longitude": 2.3376},
            {"id": "orsay", "name": "Musee d'Orsay", "latitude": 48.8600, "longitude": 2.3266},
            {"id": "compiegne", "name": "Chateau de Compiegne", "latitude": 49.57, "longitude": 2.3522},
        ],
        "preferences": [
            {"traveler_key": "ana", "destination_id": "louvre", "score": 5, "preferred_duration_hours": 2},
            {"traveler_key": "ana", "destination_id": "orsay", "score": 3, "preferred_duration_hours": 1.5},
            {"traveler_key": "ana", "destination_id": "compiegne", "score": 1},
            {"traveler_key": "ben", "destination_id": "louvre", "score": 2},
            {"traveler_key": "ben", "destination_id": "compiegne", "score": 5, "preferred_duration_hours": 3},
        ],
        "departure": {"id": "home", "latitude": 48.8566, "longitude": 2.3522, "name": "Hotel de Ville"},
        "start_date": "2025-06-02",
        "end_date": "2025-06-03",
        "seed": 1,
    }


def test_health():
    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "tripweave"}


def test_optimize_returns_route_and_days():
    response = client.post("/v1/optimize/route", json=_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["summary"]["time_mode"] == "fixed"
    assert body["route"]["feasible"] is True
    assert body["itinerary"]["days"][0]["date"] == "2025-06-02"
    scheduled = {d["destination_id"] for day in body["itinerary"]["days"] for d in day["destinations"]}
    assert scheduled <= {"louvre", "orsay", "compiegne"}
    assert 0.0 <= body["fairness_analysis"]["fairness_score"] <= 1.0


def test_invalid_input_returns_error_codes():
    payload = _payload()
    payload["departure"] = None
    payload["preferences"][0]["score"] = 9

    response = client.post("/v1/optimize/route", json=payload)

    assert response.status_code == 422
    codes = [e.split(":", 1)[0] for e in response.json()["detail"]["errors"]]
    assert codes == ["MISSING_DEPARTURE_LOCATION", "INVALID_PREFERENCE_SCORE"]


def test_malformed_date_is_rejected():
    payload = _payload()
    payload["start_date"] = "June 2nd"

    response = client.post("/v1/optimize/route", json=payload)

    assert response.status_code == 422
    assert "start_date" in response.json()["detail"]
