from fastapi import Depends, Request

from uxpulse.core.config import get_settings
from uxpulse.integrations.llm import InsightGenerator
from uxpulse.services.analytics import AnalyticsService
from uxpulse.services.insights import InsightReportService

_generator: InsightGenerator | None = None


async def get_analytics_service(request: Request) -> AnalyticsService:
    """Provide the AnalyticsService owned by the running application."""
    return request.app.state.analytics


async def get_insight_generator() -> InsightGenerator:
    """Provide the InsightGenerator singleton."""
    global _generator
    if _generator is None:
        _generator = InsightGenerator(get_settings())
    return _generator


async def get_insight_report_service(
    analytics: AnalyticsService = Depends(get_analytics_service),
    generator: InsightGenerator = Depends(get_insight_generator),
) -> InsightReportService:
    """Provide InsightReportService bound to the application's event log."""
    settings = get_settings()
    return InsightReportService(
        analytics,
        generator,
        timeout_seconds=settings.llm_timeout_seconds,
    )
