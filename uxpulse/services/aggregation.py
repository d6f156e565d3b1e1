from __future__ import annotations

import math
import threading
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from uxpulse.schemas.analytics import (
    AverageViewport,
    PageBreakdown,
    Snapshot,
    TallyCounts,
    TallyPage,
)
from uxpulse.schemas.events import TelemetryEvent


UNKNOWN_PAGE = "unknown"
DEFAULT_RECENT_WINDOW = 50
SESSION_STATUSES = ("completed", "active", "abandoned")

_CLICK_FIELDS = ("x", "y", "currentPage", "timestamp")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _whole(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def _percentage(part: int, whole: int) -> float:
    """Return ``part / whole`` as a percentage rounded to one decimal place."""
    if not whole:
        return 0
    return _round_half_up(part / whole * 1000) / 10


def _recent(items: list[dict[str, Any]], window: int) -> list[dict[str, Any]]:
    return items[-window:] if window > 0 else []


@dataclass(slots=True)
class _ReplayAccumulator:
    sessions: set[str] = field(default_factory=set)
    clicks: list[dict[str, Any]] = field(default_factory=list)
    mouse_movements: list[dict[str, Any]] = field(default_factory=list)
    scrolls: list[dict[str, Any]] = field(default_factory=list)
    rage_clicks: list[dict[str, Any]] = field(default_factory=list)
    pages: dict[str, PageBreakdown] = field(default_factory=dict)
    time_on_page: float = 0.0
    viewport_width: float = 0.0
    viewport_height: float = 0.0
    viewport_samples: int = 0
    conversion_time: float = 0.0
    conversions: int = 0
    statuses: dict[str, int] = field(
        default_factory=lambda: {status: 0 for status in SESSION_STATUSES}
    )

    def add(self, event: TelemetryEvent) -> None:
        if event.session_id is not None:
            self.sessions.add(event.session_id)

        self.clicks.extend(
            {key: click[key] for key in _CLICK_FIELDS if key in click}
            for click in event.clicks
        )
        self.mouse_movements.extend(event.mouse_movements)
        self.scrolls.extend(event.scrolls)
        self.rage_clicks.extend(event.rage_clicks)

        page = self.pages.setdefault(event.current_page or UNKNOWN_PAGE, PageBreakdown())
        page.clicks += len(event.clicks)
        page.sessions += 1

        if event.time_on_page:
            self.time_on_page += event.time_on_page

        viewport = event.viewport
        if viewport is not None and viewport.width and viewport.height:
            self.viewport_width += viewport.width
            self.viewport_height += viewport.height
            self.viewport_samples += 1

        if event.conversion_time is not None:
            self.conversion_time += event.conversion_time
            self.conversions += 1

        if event.session_status in self.statuses:
            self.statuses[event.session_status] += 1


def build_snapshot(
    events: Sequence[TelemetryEvent],
    *,
    recent_window: int = DEFAULT_RECENT_WINDOW,
) -> Snapshot:
    """Replay the full event log and derive every aggregate metric.

    Averages and rates are computed against the number of events, not the
    number of distinct sessions. ``average_time_to_convert`` stays ``None``
    when no event reported a conversion time.
    """
    acc = _ReplayAccumulator()
    for event in events:
        acc.add(event)

    total = len(events)
    samples = acc.viewport_samples
    average_viewport = AverageViewport(
        width=_round_half_up(acc.viewport_width / samples) if samples else 0,
        height=_round_half_up(acc.viewport_height / samples) if samples else 0,
    )

    return Snapshot(
        total_sessions=len(acc.sessions),
        total_clicks=len(acc.clicks),
        total_mouse_movements=len(acc.mouse_movements),
        total_scrolls=len(acc.scrolls),
        total_rage_clicks=len(acc.rage_clicks),
        total_time_on_page=_whole(acc.time_on_page),
        clicks=_recent(acc.clicks, recent_window),
        mouse_movements=_recent(acc.mouse_movements, recent_window),
        scrolls=_recent(acc.scrolls, recent_window),
        rage_clicks=_recent(acc.rage_clicks, recent_window),
        pages=acc.pages,
        average_viewport=average_viewport,
        active_sessions=acc.statuses["active"],
        completed_sessions=acc.statuses["completed"],
        abandoned_sessions=acc.statuses["abandoned"],
        average_time_to_convert=(
            _round_half_up(acc.conversion_time / acc.conversions) if acc.conversions else None
        ),
        drop_off_rate=_percentage(acc.statuses["abandoned"], total),
        conversion_rate=_percentage(acc.statuses["completed"], total),
        average_clicks=len(acc.clicks) / total if total else 0,
        average_time_on_page=_round_half_up(acc.time_on_page / total) if total else 0,
    )


class TallyAggregator:
    """Counter map updated in place on every ingested event.

    Ingest and query are both constant time; raw events are not consulted,
    so no "recent" views are available from the tally.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_events = 0
        self._sessions: set[str] = set()
        self._event_types: dict[str, int] = defaultdict(int)
        self._pages: dict[str, list[int]] = defaultdict(lambda: [0, 0])

    @staticmethod
    def check(event: TelemetryEvent) -> None:
        if not event.event_type:
            raise ValueError("eventType is required")

    def observe(self, event: TelemetryEvent) -> None:
        self.check(event)

        with self._lock:
            self._total_events += 1
            self._event_types[event.event_type] += 1
            if event.session_id is not None:
                self._sessions.add(event.session_id)
            page = self._pages[event.current_page or UNKNOWN_PAGE]
            page[0] += 1
            page[1] += len(event.clicks)

    def observe_many(self, events: Iterable[TelemetryEvent]) -> None:
        for event in events:
            if event.event_type:
                self.observe(event)

    def counts(self) -> TallyCounts:
        with self._lock:
            return TallyCounts(
                total_events=self._total_events,
                total_sessions=len(self._sessions),
                event_types=dict(self._event_types),
                pages={
                    name: TallyPage(events=events, clicks=clicks)
                    for name, (events, clicks) in self._pages.items()
                },
            )

    def reset(self) -> None:
        with self._lock:
            self._total_events = 0
            self._sessions.clear()
            self._event_types.clear()
            self._pages.clear()
