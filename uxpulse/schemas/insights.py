from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from uxpulse.services.segmentation import InsightSegment


class SegmentItem(BaseModel):
    insight: str
    suggestion: str

    @classmethod
    def from_domain(cls, segment: InsightSegment) -> "SegmentItem":
        return cls(insight=segment.insight, suggestion=segment.suggestion)


class InsightsResponse(BaseModel):
    """Structured insights extracted from the generated report."""

    insights: list[SegmentItem]
    message: str | None = None
    text: str = ""
    counts: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    error: str
