from __future__ import annotations

import pytest

from uxpulse.schemas.analytics import Snapshot, TallyCounts
from uxpulse.schemas.events import TelemetryEvent
from uxpulse.services.analytics import AnalyticsService
from uxpulse.services.event_store import InMemoryEventStore


def _event(**payload: object) -> TelemetryEvent:
    return TelemetryEvent.model_validate(payload)


@pytest.mark.asyncio
async def test_replay_mode_recomputes_snapshot_from_log() -> None:
    service = AnalyticsService(InMemoryEventStore())

    assert await service.record_event(_event(sessionId="a", clicks=[{"x": 1}])) is None
    await service.record_event(_event(sessionId="b", sessionStatus="completed"))

    snapshot = await service.counts()

    assert isinstance(snapshot, Snapshot)
    assert snapshot.total_sessions == 2
    assert snapshot.total_clicks == 1
    assert snapshot.conversion_rate == pytest.approx(50.0)
    assert await service.counts() == snapshot


@pytest.mark.asyncio
async def test_tally_mode_returns_updated_counters_and_keeps_raw_log() -> None:
    store = InMemoryEventStore()
    service = AnalyticsService(store, mode="tally")

    counts = await service.record_event(_event(eventType="click", sessionId="a"))
    await service.record_event(_event(eventType="click", sessionId="a"))

    assert isinstance(counts, TallyCounts)
    assert counts.total_events == 1
    latest = await service.counts()
    assert latest.event_types == {"click": 2}
    assert latest.total_sessions == 1
    assert await store.count() == 2


@pytest.mark.asyncio
async def test_tally_mode_rejects_events_without_type() -> None:
    store = InMemoryEventStore()
    service = AnalyticsService(store, mode="tally")

    with pytest.raises(ValueError):
        await service.record_event(_event(sessionId="a"))

    assert await store.count() == 0


class FailingStore(InMemoryEventStore):
    async def append(self, event: TelemetryEvent) -> None:
        raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_tally_counters_untouched_when_append_fails() -> None:
    store = FailingStore()
    service = AnalyticsService(store, mode="tally")

    with pytest.raises(RuntimeError):
        await service.record_event(_event(eventType="click", sessionId="a"))

    counts = await service.counts()
    assert counts.total_events == 0
    assert counts.event_types == {}
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_warm_up_rebuilds_tally_from_existing_events() -> None:
    store = InMemoryEventStore()
    await store.append(_event(eventType="view", currentPage="/"))
    await store.append(_event(sessionId="untyped"))
    service = AnalyticsService(store, mode="tally")

    await service.warm_up()

    counts = await service.counts()
    assert counts.total_events == 1
    assert counts.pages["/"].events == 1


@pytest.mark.asyncio
async def test_reset_clears_store_and_counters() -> None:
    service = AnalyticsService(InMemoryEventStore(), mode="tally")
    await service.record_event(_event(eventType="click"))

    cleared = await service.reset()

    assert cleared == 1
    counts = await service.counts()
    assert counts.total_events == 0


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        AnalyticsService(InMemoryEventStore(), mode="stream")  # type: ignore[arg-type]
