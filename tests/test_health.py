# tests/test_health.py
from typing import Any


def test_health_reports_ok(client: Any) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_describes_api(client: Any) -> None:
    """The root endpoint advertises the API name and docs location."""
    r = client.get("/")
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Inkwell API"
    assert body["docs"] == "/docs"


def test_unknown_route_uses_error_envelope(client: Any) -> None:
    r = client.get("/api/v1/does-not-exist")
    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"
