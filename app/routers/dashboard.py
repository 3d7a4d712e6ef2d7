# =============================================================================
# app/routers/dashboard.py - Dashboard and Business Settings Endpoints
# =============================================================================
# Read-only endpoints backing the owner dashboard.
# All endpoints require authentication.
# =============================================================================

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from core.services.dashboard_service import get_dashboard_metrics
from core.services.settings_service import get_intro_duration

router = APIRouter()


@router.get("/dashboard/metrics")
async def dashboard_metrics(
    user: AuthUser = Depends(get_current_user),
):
    """
    Headline KPIs and customer insights.

    Sections that can't be computed are returned as null.
    """
    return await run_in_threadpool(get_dashboard_metrics)


@router.get("/settings/intro-duration")
async def intro_duration(
    user: AuthUser = Depends(get_current_user),
):
    """Intro offer length in days (14 when not configured)."""
    return await run_in_threadpool(get_intro_duration)
