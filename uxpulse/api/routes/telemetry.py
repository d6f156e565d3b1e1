from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from uxpulse.api.deps import get_analytics_service, get_insight_report_service
from uxpulse.integrations.llm import InsightGenerationError, InsightTimeoutError
from uxpulse.schemas.analytics import CountsResponse
from uxpulse.schemas.events import EventReceipt, ResetResponse, TelemetryEvent
from uxpulse.schemas.insights import ErrorResponse, InsightsResponse, SegmentItem
from uxpulse.services.analytics import AnalyticsService
from uxpulse.services.insights import InsightReportService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/event",
    response_model=EventReceipt,
    response_model_exclude_none=True,
    summary="Append a raw telemetry event to the log.",
)
async def record_event(
    payload: TelemetryEvent,
    request: Request,
    service: AnalyticsService = Depends(get_analytics_service),
) -> EventReceipt:
    try:
        counts = await service.record_event(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if counts is not None:
        return EventReceipt(counts=counts.model_dump(by_alias=True))
    return EventReceipt(received=await request.json())


@router.get(
    "/counts",
    response_model=CountsResponse,
    summary="Aggregate statistics over every recorded event.",
)
async def get_counts(
    service: AnalyticsService = Depends(get_analytics_service),
) -> CountsResponse:
    return CountsResponse(data=await service.counts())


@router.get(
    "/insights",
    response_model=InsightsResponse,
    responses={500: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
    summary="Generate UX insight/suggestion pairs from the current metrics.",
)
async def get_insights(
    service: InsightReportService = Depends(get_insight_report_service),
) -> InsightsResponse | JSONResponse:
    try:
        report = await service.generate()
    except InsightTimeoutError as exc:
        return JSONResponse(status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"error": str(exc)})
    except InsightGenerationError as exc:
        logger.error("Insight generation failed: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
        )

    return InsightsResponse(
        insights=[SegmentItem.from_domain(segment) for segment in report.segments],
        message=report.message,
        text=report.text,
        counts=report.counts,
    )


@router.delete(
    "/events",
    response_model=ResetResponse,
    summary="Clear the event log and any derived counters.",
)
async def reset_events(
    service: AnalyticsService = Depends(get_analytics_service),
) -> ResetResponse:
    cleared = await service.reset()
    return ResetResponse(cleared=cleared)

