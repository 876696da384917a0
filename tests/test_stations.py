import pytest

from driver_dashboard.core.geo import haversine_km

SF = {"lat": 37.7749, "lng": -122.4194}


def create_station(client, name, lat, lng, type="fuel", **extra):
    payload = {
        "name": name,
        "type": type,
        "address": f"{name} address",
        "coordinates": {"lat": lat, "lng": lng},
        **extra,
    }
    response = client.post("/api/stations", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_then_get_round_trip(client):
    created = create_station(
        client, "Bayshore Fuel", 37.7158, -122.4010,
        open_hours="24/7", amenities=["diesel", "showers"], price=4.89,
    )
    fetched = client.get(f"/api/stations/{created['id']}").json()
    assert fetched == created
    assert fetched["amenities"] == ["diesel", "showers"]


def test_nearby_filters_by_radius_and_orders_by_distance(client):
    create_station(client, "Los Angeles", 34.0522, -118.2437)
    create_station(client, "Berkeley", 37.8715, -122.2730, type="rest")
    create_station(client, "Downtown", 37.7790, -122.4170, type="ev")
    create_station(client, "Oakland", 37.8044, -122.2712)

    response = client.get("/api/stations", params={**SF, "radius": 50})
    assert response.status_code == 200
    stations = response.json()

    assert [s["name"] for s in stations] == ["Downtown", "Oakland", "Berkeley"]
    distances = [s["distance"] for s in stations]
    assert distances == sorted(distances)
    assert all(d <= 50 for d in distances)


def test_nearby_excludes_stations_just_outside_radius(client):
    create_station(client, "Oakland", 37.8044, -122.2712)
    exact = haversine_km(SF["lat"], SF["lng"], 37.8044, -122.2712)

    inside = client.get("/api/stations", params={**SF, "radius": exact + 0.01}).json()
    outside = client.get("/api/stations", params={**SF, "radius": exact - 0.01}).json()
    assert [s["name"] for s in inside] == ["Oakland"]
    assert outside == []


def test_nearby_with_type_filter(client):
    create_station(client, "Downtown EV", 37.7790, -122.4170, type="ev")
    create_station(client, "Downtown Fuel", 37.7800, -122.4180, type="fuel")

    stations = client.get("/api/stations", params={**SF, "radius": 10, "type": "ev"}).json()
    assert [s["name"] for s in stations] == ["Downtown EV"]


def test_nearby_does_not_modify_stored_station(client):
    created = create_station(client, "Downtown", 37.7790, -122.4170)
    client.get("/api/stations", params={**SF, "radius": 10})
    assert client.get(f"/api/stations/{created['id']}").json()["distance"] is None


def test_lat_without_lng_rejected(client):
    assert client.get("/api/stations", params={"lat": 37.7}).status_code == 400


def test_radius_without_point_rejected(client):
    create_station(client, "Downtown", 37.7790, -122.4170)
    response = client.get("/api/stations", params={"radius": 5})
    assert response.status_code == 400
    assert "radius" in response.json()["detail"]


def test_client_supplied_distance_ignored(client):
    created = create_station(client, "Downtown", 37.7790, -122.4170, distance=0.5)
    assert created["distance"] is None
    assert client.get(f"/api/stations/{created['id']}").json()["distance"] is None


def test_invalid_type_rejected(client):
    response = client.post("/api/stations", json={
        "name": "Depot", "type": "hydrogen", "address": "x", "coordinates": SF,
    })
    assert response.status_code == 400


def test_out_of_range_coordinates_rejected(client):
    response = client.post("/api/stations", json={
        "name": "Depot", "type": "fuel", "address": "x", "coordinates": {"lat": 95, "lng": 0},
    })
    assert response.status_code == 400


def test_update_and_delete(client):
    created = create_station(client, "Depot", 37.7, -122.4)
    updated = client.put(f"/api/stations/{created['id']}", json={"price": 5.10}).json()
    assert updated["price"] == pytest.approx(5.10)
    assert updated["name"] == "Depot"

    assert client.delete(f"/api/stations/{created['id']}").status_code == 204
    assert client.delete(f"/api/stations/{created['id']}").status_code == 404
    assert client.put(f"/api/stations/{created['id']}", json={"price": 1}).status_code == 404
