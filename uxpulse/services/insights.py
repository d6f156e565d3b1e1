from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from uxpulse.integrations.llm import InsightGenerator
from uxpulse.schemas.analytics import Snapshot, TallyCounts
from uxpulse.services.analytics import AnalyticsService
from uxpulse.services.segmentation import InsightSegment, InsightSegmenter


logger = logging.getLogger(__name__)

NO_INSIGHTS_MESSAGE = "No insights generated. There may not be enough event data yet."
_TOP_PAGES = 3
_BLANK_LINES = re.compile(r"(?:\r?\n){2,}")


@dataclass(slots=True)
class InsightReport:
    segments: list[InsightSegment]
    text: str
    message: str | None = None
    counts: dict[str, Any] | None = None


def summarize_snapshot(snapshot: Snapshot) -> str:
    """Render the headline metrics of a snapshot as a single prompt line."""
    parts = [
        f"sessions: {snapshot.total_sessions}",
        f"clicks: {snapshot.total_clicks}",
        f"mouse movements: {snapshot.total_mouse_movements}",
        f"scrolls: {snapshot.total_scrolls}",
        f"rage clicks: {snapshot.total_rage_clicks}",
        f"average clicks per event: {snapshot.average_clicks:.2f}",
        f"average time on page: {snapshot.average_time_on_page} ms",
        f"conversion rate: {snapshot.conversion_rate}%",
        f"drop-off rate: {snapshot.drop_off_rate}%",
    ]
    if snapshot.average_time_to_convert is not None:
        parts.append(f"average time to convert: {snapshot.average_time_to_convert} ms")
    if snapshot.average_viewport.width:
        parts.append(
            f"average viewport: {snapshot.average_viewport.width}x{snapshot.average_viewport.height}"
        )

    busiest = sorted(snapshot.pages.items(), key=lambda item: item[1].sessions, reverse=True)
    if busiest:
        pages = ", ".join(
            f"{name} ({page.sessions} events, {page.clicks} clicks)"
            for name, page in busiest[:_TOP_PAGES]
        )
        parts.append(f"busiest pages: {pages}")
    return ", ".join(parts)


def summarize_tally(counts: TallyCounts) -> str:
    event_types = ", ".join(
        f"{name}: {count}"
        for name, count in sorted(counts.event_types.items(), key=lambda item: -item[1])
    )
    return (
        f"events: {counts.total_events}, sessions: {counts.total_sessions}, "
        f"event types: {event_types or 'none'}"
    )


def build_prompt(summary: str) -> str:
    return (
        f"Given these event stats: {summary}\n"
        "Generate 1-2 actionable insights or UX improvement suggestions for the dashboard.\n"
        "Format each as a numbered item: one sentence stating the insight, then a line "
        'starting with "UX Suggestion:".'
    )


class InsightReportService:
    """Turns the current aggregate state into structured UX insights."""

    def __init__(
        self,
        analytics: AnalyticsService,
        generator: InsightGenerator,
        *,
        segmenter: InsightSegmenter | None = None,
        timeout_seconds: float | None = None,
    ):
        self._analytics = analytics
        self._generator = generator
        self._segmenter = segmenter or InsightSegmenter()
        self._timeout_seconds = timeout_seconds

    async def generate(self) -> InsightReport:
        """Build the prompt, drain the provider stream and segment the result.

        Provider failures propagate as ``InsightGenerationError``; nothing is
        retried here.
        """
        counts = await self._analytics.counts()
        if isinstance(counts, Snapshot):
            summary = summarize_snapshot(counts)
        else:
            summary = summarize_tally(counts)
        metrics = counts.model_dump(by_alias=True)

        text = await self._generator.drain(
            build_prompt(summary),
            metrics=metrics,
            timeout=self._timeout_seconds,
        )
        text = _BLANK_LINES.sub("\n", text).strip()

        segments = self._segmenter.segment(text)
        logger.info(
            "Generated %d insight(s) from %d characters of report text", len(segments), len(text)
        )
        return InsightReport(
            segments=segments,
            text=text,
            message=None if text else NO_INSIGHTS_MESSAGE,
            counts=metrics if isinstance(counts, TallyCounts) else None,
        )
