from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from uxpulse.api.deps import get_analytics_service
from uxpulse.services.analytics import AnalyticsService

router = APIRouter()


@router.get("/healthz")
async def healthcheck(
    service: AnalyticsService = Depends(get_analytics_service),
) -> dict[str, str]:
    """Liveness probe reporting the active aggregation mode."""
    return {
        "status": "ok",
        "mode": service.mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
