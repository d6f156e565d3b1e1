from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Mapping

import pytest
from fastapi.testclient import TestClient

from uxpulse.api.deps import get_insight_generator
from uxpulse.core.app import create_app
from uxpulse.core.config import AppSettings
from uxpulse.integrations.llm import InsightGenerationError, InsightTimeoutError
from uxpulse.services.insights import NO_INSIGHTS_MESSAGE


class StubGenerator:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    async def drain(
        self,
        prompt: str,
        *,
        metrics: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@contextmanager
def client_for(settings: AppSettings | None = None, generator: StubGenerator | None = None):
    app = create_app(settings or AppSettings())

    if generator is not None:

        async def override_generator():
            return generator

        app.dependency_overrides[get_insight_generator] = override_generator
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def _event(**payload: Any) -> dict[str, Any]:
    return payload


def test_post_event_echoes_payload() -> None:
    with client_for() as client:
        response = client.post(
            "/api/event",
            json=_event(sessionId="s1", currentPage="/home", clicks=[{"x": 1, "y": 2}]),
        )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Event data received"
    assert body["received"]["sessionId"] == "s1"
    assert body["received"]["clicks"] == [{"x": 1, "y": 2}]


def test_post_event_echoes_the_body_as_sent() -> None:
    body = {"sessionId": "s1", "clicks": "not-a-list", "customField": 7}

    with client_for() as client:
        response = client.post("/api/event", json=body)

    assert response.status_code == 200
    assert response.json()["received"] == body


def test_counts_reflect_posted_events() -> None:
    with client_for() as client:
        client.post(
            "/api/event",
            json=_event(
                sessionId="s1",
                currentPage="/checkout",
                clicks=[{"x": 1, "y": 1, "timestamp": 1, "currentPage": "/checkout"}],
                viewport={"width": 1440, "height": 900},
                sessionStatus="completed",
                conversionTime=1200,
            ),
        )
        client.post("/event", json=_event(sessionId="s2", clicks="broken", sessionStatus="abandoned"))
        first = client.get("/api/counts")
        second = client.get("/counts")

    assert first.status_code == 200
    data = first.json()["data"]
    assert data["totalSessions"] == 2
    assert data["totalClicks"] == 1
    assert data["averageClicks"] == pytest.approx(0.5)
    assert data["averageViewport"] == {"width": 1440, "height": 900}
    assert data["averageTimeToConvert"] == 1200
    assert data["conversionRate"] == pytest.approx(50.0)
    assert data["dropOffRate"] == pytest.approx(50.0)
    assert data["pages"]["/checkout"] == {"clicks": 1, "sessions": 1}
    assert second.json() == first.json()


def test_counts_on_empty_log_keep_null_time_to_convert() -> None:
    with client_for() as client:
        response = client.get("/api/counts")

    data = response.json()["data"]
    assert data["totalSessions"] == 0
    assert data["averageTimeToConvert"] is None
    assert data["clicks"] == []


def test_insights_returns_segments() -> None:
    generator = StubGenerator(
        "1. Users drop off on checkout.\n**UX Suggestion:** Add a progress indicator."
    )
    with client_for(generator=generator) as client:
        client.post("/api/event", json=_event(sessionId="s1", sessionStatus="abandoned"))
        response = client.get("/api/insights")

    assert response.status_code == 200
    body = response.json()
    assert body["insights"] == [
        {"insight": "Users drop off on checkout.", "suggestion": "Add a progress indicator."}
    ]
    assert body["message"] is None
    assert "sessions: 1" in generator.prompts[0]


def test_insights_reports_sentinel_when_text_empty() -> None:
    with client_for(generator=StubGenerator("")) as client:
        response = client.get("/insights")

    assert response.status_code == 200
    body = response.json()
    assert body["insights"] == []
    assert body["message"] == NO_INSIGHTS_MESSAGE


def test_insights_surface_provider_failures() -> None:
    with client_for(generator=StubGenerator(error=InsightGenerationError("auth failed"))) as client:
        response = client.get("/api/insights")

    assert response.status_code == 500
    assert "auth failed" in response.json()["error"]

    with client_for(generator=StubGenerator(error=InsightTimeoutError("too slow"))) as client:
        response = client.get("/api/insights")

    assert response.status_code == 504
    assert response.json() == {"error": "too slow"}


def test_delete_events_resets_log() -> None:
    with client_for() as client:
        client.post("/api/event", json=_event(sessionId="s1"))
        client.post("/api/event", json=_event(sessionId="s2"))
        response = client.delete("/api/events")
        counts = client.get("/api/counts").json()["data"]

    assert response.status_code == 200
    assert response.json()["cleared"] == 2
    assert counts["totalSessions"] == 0


def test_tally_mode_requires_event_type() -> None:
    settings = AppSettings(AGGREGATION_MODE="tally")
    with client_for(settings) as client:
        rejected = client.post("/api/event", json=_event(sessionId="s1"))
        accepted = client.post("/api/event", json=_event(eventType="click", sessionId="s1"))
        counts = client.get("/api/counts").json()["data"]

    assert rejected.status_code == 400
    assert accepted.status_code == 200
    assert accepted.json()["counts"]["eventTypes"] == {"click": 1}
    assert counts["totalEvents"] == 1
    assert counts["pages"]["unknown"] == {"events": 1, "clicks": 0}


def test_tally_mode_insights_include_counts() -> None:
    settings = AppSettings(AGGREGATION_MODE="tally")
    with client_for(settings, StubGenerator("Clicks dominate. Add shortcuts.")) as client:
        client.post("/api/event", json=_event(eventType="click"))
        body = client.get("/api/insights").json()

    assert body["counts"]["totalEvents"] == 1
    assert body["insights"][0]["suggestion"] == "Add shortcuts."
