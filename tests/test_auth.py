from driver_dashboard.config import settings


def test_login_returns_public_user(anon_client):
    response = anon_client.post("/api/login", json={"username": "driver1", "password": "secret1"})
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "driver1"
    assert body["full_name"] == "Driver One"
    assert "password" not in body


def test_login_rejects_wrong_password(anon_client):
    response = anon_client.post("/api/login", json={"username": "driver1", "password": "nope"})
    assert response.status_code == 401


def test_login_rejects_unknown_user(anon_client):
    response = anon_client.post("/api/login", json={"username": "ghost", "password": "secret1"})
    assert response.status_code == 401


def test_me_requires_session(anon_client):
    assert anon_client.get("/api/me").status_code == 401


def test_me_and_logout(client):
    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.json()["username"] == "driver1"

    response = client.post("/api/logout")
    assert response.json() == {"success": True}
    assert client.get("/api/me").status_code == 401


def test_protected_endpoints_require_session(anon_client):
    assert anon_client.get("/api/inventory").status_code == 401
    assert anon_client.get("/api/deliveries").status_code == 401
    assert anon_client.get("/api/stations").status_code == 401


def test_demo_mode_logs_in_demo_driver(anon_client, monkeypatch, storage):
    monkeypatch.setattr(settings, "DEMO_MODE", True)

    response = anon_client.get("/api/me")
    assert response.status_code == 200
    assert response.json()["username"] == "demo"
    assert response.json()["driver_id"] == "DRV-001"

    anon_client.get("/api/me")
    assert len([u for u in storage.users.all() if u.username == "demo"]) == 1


def test_passwords_are_stored_hashed(storage):
    user = storage.get_user_by_username("driver1")
    assert user.password != "secret1"


def test_health_reports_integrations(anon_client):
    response = anon_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["maps_enabled"] is False
