"""Activity metrics API router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.dependencies import CurrentUserDep, get_analytics_service
from app.schemas.analytics_schema import ActivityHistogram, SummaryResponse
from app.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from app.services.analytics_service import AnalyticsService

router = APIRouter(
    prefix="/api/v1/metrics",
    tags=["metrics"],
    responses={401: ERROR_RESPONSES[401]},
)

AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("", response_model=ApiResponse[ActivityHistogram])
async def activity_histogram(
    current_user: CurrentUserDep,
    analytics: AnalyticsServiceDep,
) -> dict:
    """Hourly message counts for the trailing 24 hours."""
    result = await analytics.hourly_histogram(owner=current_user.username)
    return success_response(result)


@router.post("", response_model=ApiResponse[SummaryResponse])
async def activity_summary(
    current_user: CurrentUserDep,
    analytics: AnalyticsServiceDep,
) -> dict:
    """AI summary of the trailing 24 hours of conversations."""
    summary = await analytics.fleet_summary(owner=current_user.username)
    return success_response(SummaryResponse(summary=summary))
