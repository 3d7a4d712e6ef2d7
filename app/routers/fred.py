# =============================================================================
# app/routers/fred.py - Fred Assistant Endpoints
# =============================================================================
# Natural-language questions about customers, answered with the metric
# registry. All endpoints require authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from agents.analytics import list_metrics
from agents.fred import FredAgent
from core.models.assistant import AskRequest, FredAnswer, MetricDescriptor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ask", response_model=FredAnswer)
async def ask_fred(
    request: AskRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Ask Fred a question.

    Fred may consult several metrics before answering; the ones it used are
    listed in `tool_calls`. An empty question is a 400; a failure talking
    to the model is a 502.
    """
    agent = FredAgent()
    return await run_in_threadpool(agent.ask, request.question)


@router.get("/metrics", response_model=list[MetricDescriptor])
async def get_metric_catalogue(
    user: AuthUser = Depends(get_current_user),
):
    """List every metric Fred can compute."""
    return list_metrics()
