from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from driver_dashboard.config import settings
from driver_dashboard.core.security import register_user
from driver_dashboard.data.storage import MemStorage
from driver_dashboard.main import create_app
from driver_dashboard.services import llm_client


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    monkeypatch.setattr(settings, "DEMO_MODE", False)
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    monkeypatch.setattr(llm_client, "client", None)


@pytest.fixture
def storage():
    store = MemStorage()
    register_user(store, {"username": "driver1", "password": "secret1", "full_name": "Driver One"})
    register_user(store, {"username": "driver2", "password": "secret2", "full_name": "Driver Two"})
    return store


@pytest.fixture
def app(storage):
    return create_app(storage)


@pytest.fixture
def anon_client(app):
    return TestClient(app)


def _logged_in(app, username, password):
    client = TestClient(app)
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def client(app):
    return _logged_in(app, "driver1", "secret1")


@pytest.fixture
def other_client(app):
    return _logged_in(app, "driver2", "secret2")


@pytest.fixture
def fake_llm(monkeypatch):
    def install(content=None, error=None):
        fake = FakeOpenAI(content=content, error=error)
        monkeypatch.setattr(llm_client, "client", fake)
        return fake
    return install
