from __future__ import annotations

from typing import Any

from pydantic import ConfigDict

from uxpulse.schemas.events import CamelModel


class PageBreakdown(CamelModel):
    """Per-page click and event tallies."""

    clicks: int = 0
    sessions: int = 0


class AverageViewport(CamelModel):
    width: int = 0
    height: int = 0


class Snapshot(CamelModel):
    """Aggregated metrics recomputed from the full event log."""

    model_config = ConfigDict(frozen=True)

    total_sessions: int
    total_clicks: int
    total_mouse_movements: int
    total_scrolls: int
    total_rage_clicks: int
    total_time_on_page: int | float
    clicks: list[dict[str, Any]]
    mouse_movements: list[dict[str, Any]]
    scrolls: list[dict[str, Any]]
    rage_clicks: list[dict[str, Any]]
    pages: dict[str, PageBreakdown]
    average_viewport: AverageViewport
    active_sessions: int
    completed_sessions: int
    abandoned_sessions: int
    average_time_to_convert: int | None
    drop_off_rate: float
    conversion_rate: float
    average_clicks: float
    average_time_on_page: int


class TallyPage(CamelModel):
    events: int = 0
    clicks: int = 0


class TallyCounts(CamelModel):
    """Counter map maintained incrementally as events arrive."""

    total_events: int
    total_sessions: int
    event_types: dict[str, int]
    pages: dict[str, TallyPage]


class CountsResponse(CamelModel):
    data: Snapshot | TallyCounts
