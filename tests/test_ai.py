import json
from types import SimpleNamespace

import httpx
import openai

SF = {"lat": 37.7749, "lng": -122.4194}

DELIVERIES = [
    {"id": 1, "destination": "Acme", "address": "1 Market St", "coordinates": {"lat": 37.79, "lng": -122.39}},
    {"id": 2, "destination": "Globex", "address": "500 Howard St", "coordinates": {"lat": 37.78, "lng": -122.40}},
    {"id": 3, "destination": "Initech", "address": "2 Berry St", "coordinates": {"lat": 37.77, "lng": -122.39}},
]

GOOD_REPLY = {
    "optimized_route": [2, 3, 1],
    "estimated_distance": 12.4,
    "estimated_duration": 55,
    "recommended_stops": [
        {"type": "rest", "after_delivery_id": 3, "location": {"lat": 37.78, "lng": -122.40}, "reason": "Break"},
    ],
    "suggestions": "Start with Globex to avoid Market St traffic.",
}


def optimize(client, **overrides):
    return client.post("/api/routes/optimize", json={
        "deliveries": DELIVERIES,
        "start_location": SF,
        "preferences": {"avoid_tolls": True},
        **overrides,
    })


def test_missing_api_key_returns_503(client):
    response = optimize(client)
    assert response.status_code == 503
    assert "not set" in response.json()["detail"]["message"]


def test_valid_reply_is_returned(client, fake_llm):
    fake = fake_llm(json.dumps(GOOD_REPLY))
    response = optimize(client)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["optimized_route"] == [2, 3, 1]
    assert body["recommended_stops"][0]["after_delivery_id"] == 3

    call = fake.completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert "Globex" in call["messages"][1]["content"]


def test_free_text_reply_is_diagnosable(client, fake_llm):
    raw = "Sure! Here is your route: 2, then 3, then 1."
    fake_llm(raw)
    response = optimize(client)

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["raw"] == raw
    assert "RouteOptimization" in detail["message"]


def test_wrong_shape_reply_is_diagnosable(client, fake_llm):
    raw = json.dumps({"route": [1, 2, 3]})
    fake_llm(raw)
    response = optimize(client)
    assert response.status_code == 500
    assert response.json()["detail"]["raw"] == raw


def test_reply_without_choices_is_diagnosable(client, fake_llm):
    fake = fake_llm()
    fake.completions.create = lambda **kwargs: SimpleNamespace(choices=[])
    response = optimize(client)

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["message"] == "Model returned no choices"
    assert "choices" in detail["raw"]


def test_unknown_delivery_ids_rejected(client, fake_llm):
    fake_llm(json.dumps({**GOOD_REPLY, "optimized_route": [2, 3, 1, 42]}))
    response = optimize(client)
    assert response.status_code == 500
    assert "42" in response.json()["detail"]["message"]


def test_duplicate_delivery_ids_rejected(client, fake_llm):
    fake_llm(json.dumps({**GOOD_REPLY, "optimized_route": [2, 2, 1, 3]}))
    assert optimize(client).status_code == 500


def test_omitted_deliveries_are_appended(client, fake_llm):
    fake_llm(json.dumps({**GOOD_REPLY, "optimized_route": [3]}))
    response = optimize(client)
    assert response.status_code == 200
    assert response.json()["optimized_route"] == [3, 1, 2]


def test_upstream_error_reported(client, fake_llm):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError("Rate limit reached", response=httpx.Response(429, request=request), body=None)
    fake_llm(error=error)

    response = optimize(client)
    assert response.status_code == 500
    assert response.json()["detail"]["upstream_message"] == "Rate limit reached"


def test_empty_deliveries_rejected(client, fake_llm):
    fake_llm(json.dumps(GOOD_REPLY))
    assert optimize(client, deliveries=[]).status_code == 400


def test_optimize_stored_route(client, fake_llm):
    ids = []
    for delivery in DELIVERIES:
        payload = {
            "delivery_code": delivery["destination"][:10],
            "destination": delivery["destination"],
            "address": delivery["address"],
            "scheduled_time": "2026-05-01T09:00:00",
            "coordinates": delivery["coordinates"],
        }
        ids.append(client.post("/api/deliveries", json=payload).json()["id"])
    route = client.post("/api/routes", json={
        "name": "Downtown",
        "date": "2026-05-01T07:00:00",
        "start_location": SF,
        "waypoints": ids + [99],
    }).json()

    fake_llm(json.dumps(GOOD_REPLY))
    response = client.post(f"/api/routes/{route['id']}/optimize")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["optimized"] is True
    assert body["waypoints"] == [2, 3, 1, 99]
    assert body["distance"] == 12.4
    assert body["estimated_duration"] == 55
    assert body["suggestions"]["suggestions"].startswith("Start with Globex")

    stored = client.get(f"/api/routes/{route['id']}").json()
    assert stored == body


def test_optimize_stored_route_without_deliveries(client, fake_llm):
    fake_llm(json.dumps(GOOD_REPLY))
    route = client.post("/api/routes", json={
        "name": "Empty", "date": "2026-05-01T07:00:00", "start_location": SF, "waypoints": [5],
    }).json()
    assert client.post(f"/api/routes/{route['id']}/optimize").status_code == 400
    assert client.post("/api/routes/999/optimize").status_code == 404


def test_recommendations(client, fake_llm):
    client.post("/api/inventory", json={"name": "Chairs", "category": "Furniture", "quantity": 4, "weight": 60})
    fake = fake_llm(json.dumps({"recommendations": [
        {"type": "inventory", "text": "Load chairs last", "priority": "high"},
        {"type": "inventory", "text": "Strap down the pallets"},
    ]}))

    response = client.get("/api/recommendations", params={"type": "inventory"})
    assert response.status_code == 200, response.text
    recommendations = response.json()["recommendations"]
    assert [r["text"] for r in recommendations] == ["Load chairs last", "Strap down the pallets"]
    assert recommendations[1]["priority"] == "medium"
    assert "Chairs" in fake.completions.calls[0]["messages"][1]["content"]


def test_recommendations_without_key(client):
    assert client.get("/api/recommendations").status_code == 503


def test_recommendations_bad_output(client, fake_llm):
    fake_llm(json.dumps({"recommendations": "drive safe"}))
    response = client.get("/api/recommendations", params={"type": "route"})
    assert response.status_code == 500
    assert response.json()["detail"]["raw"] == json.dumps({"recommendations": "drive safe"})
