from fastapi.testclient import TestClient

from uxpulse.core.app import create_app
from uxpulse.core.config import AppSettings


def test_healthcheck_returns_ok() -> None:
    app = create_app(AppSettings())

    with TestClient(app) as client:
        response = client.get("/api/healthz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["mode"] == "replay"


def test_root_describes_service() -> None:
    app = create_app(AppSettings(APP_ENV="test"))

    with TestClient(app) as client:
        response = client.get("/")

    assert response.json() == {"service": "UX Pulse Analytics API", "environment": "test"}
