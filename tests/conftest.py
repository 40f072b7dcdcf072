import pytest
import requests
from fastapi.testclient import TestClient

import main

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return self._payload


class Outbound:
    """Stands in for requests.get/post; replies by URL substring."""

    def __init__(self):
        self.calls = []
        self.replies = {}

    def reply(self, url_part, response):
        self.replies[url_part] = response

    def _handle(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        for part, response in self.replies.items():
            if part in url:
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected outbound call: {method} {url}")

    def post(self, url, **kwargs):
        return self._handle("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._handle("GET", url, **kwargs)


@pytest.fixture
def outbound(monkeypatch):
    fake = Outbound()
    monkeypatch.setattr(requests, "post", fake.post)
    monkeypatch.setattr(requests, "get", fake.get)
    return fake


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_PATH", str(tmp_path / "data"))
    monkeypatch.setenv("UPLOADS_PATH", str(tmp_path / "uploads"))
    for var in ("YOCO_SECRET_KEY", "TCG_API_KEY", "BASE_URL", "JWT_SECRET",
                "MEMBER_JWT_SECRET", "ADMIN_USERNAME", "ADMIN_PASSWORD"):
        monkeypatch.delenv(var, raising=False)
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def staff_headers(client):
    r = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def make_member(client):
    def _make(email="ana@example.com", password="secret1", display_name="Ana"):
        r = client.post("/api/members/register", json={
            "email": email, "password": password, "displayName": display_name,
        })
        assert r.status_code == 201, r.text
        r = client.post("/api/members/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        body = r.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["member"]
    return _make


@pytest.fixture
def make_order(client):
    def _make(**overrides):
        body = {
            "items": [{"name": "Braai Grid", "price": 100}, {"name": "Braai Grid XL", "price": 250}],
            "customerName": "Thabo",
            "customerEmail": "thabo@example.com",
            "customerPhone": "0821234567",
        }
        body.update(overrides)
        r = client.post("/api/orders", json=body)
        assert r.status_code == 201, r.text
        return r.json()
    return _make
