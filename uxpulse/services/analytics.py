from __future__ import annotations

import logging
from typing import Literal

from uxpulse.schemas.analytics import Snapshot, TallyCounts
from uxpulse.schemas.events import TelemetryEvent
from uxpulse.services.aggregation import (
    DEFAULT_RECENT_WINDOW,
    TallyAggregator,
    build_snapshot,
)
from uxpulse.services.event_store import EventStore


logger = logging.getLogger(__name__)

AggregationMode = Literal["replay", "tally"]


class AnalyticsService:
    """Owns the event log and answers aggregate queries over it.

    In ``replay`` mode every query walks the full log. In ``tally`` mode each
    ingested event updates a counter map and queries read the counters only;
    the raw log is still kept for other consumers.
    """

    def __init__(
        self,
        store: EventStore,
        *,
        mode: AggregationMode = "replay",
        recent_window: int = DEFAULT_RECENT_WINDOW,
    ):
        if mode not in ("replay", "tally"):
            raise ValueError(f"Unsupported aggregation mode: {mode!r}")
        self._store = store
        self._mode = mode
        self._recent_window = recent_window
        self._tally = TallyAggregator() if mode == "tally" else None

    @property
    def mode(self) -> AggregationMode:
        return self._mode

    @property
    def store(self) -> EventStore:
        return self._store

    async def warm_up(self) -> None:
        """Rebuild tally counters from events already held by the store."""
        if self._tally is None:
            return
        events = await self._store.list_events()
        self._tally.observe_many(events)
        logger.info("Rebuilt tally counters from %d stored events", len(events))

    async def record_event(self, event: TelemetryEvent) -> TallyCounts | None:
        """Append ``event`` to the log; in tally mode return the updated counters."""
        if self._tally is not None:
            self._tally.check(event)
        await self._store.append(event)
        logger.debug(
            "Recorded event session=%s page=%s", event.session_id, event.current_page
        )
        if self._tally is None:
            return None
        self._tally.observe(event)
        return self._tally.counts()

    async def counts(self) -> Snapshot | TallyCounts:
        if self._tally is not None:
            return self._tally.counts()
        events = await self._store.list_events()
        return build_snapshot(events, recent_window=self._recent_window)

    async def reset(self) -> int:
        cleared = await self._store.reset()
        if self._tally is not None:
            self._tally.reset()
        return cleared
