"""
AI Notes Backend: Health Check Route
=====================================

What:  GET /health for container probes and monitoring.
How:   Probes the identity API's health endpoint and reports whether the
       summarizer credential is configured. Never spends model tokens.

Status levels:
    - healthy:   Data Service reachable, summarizer configured
    - degraded:  Data Service reachable, summarizer credential missing
    - unhealthy: Data Service unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends

from ainotes import __version__
from ainotes.dependencies import get_data_service, get_summarizer
from ainotes.schemas.note import HealthResponse
from ainotes.services.data_service import DataServiceClient
from ainotes.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    data: DataServiceClient = Depends(get_data_service),
    summarizer: SummaryProvider = Depends(get_summarizer),
) -> HealthResponse:
    overall = "healthy"

    data_status = "reachable"
    if not await data.ping():
        data_status = "unreachable"
        overall = "unhealthy"
        logger.warning("Health check: data service unreachable")

    summarizer_status = "configured"
    if not await summarizer.health_check():
        summarizer_status = "missing"
        if overall == "healthy":
            overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        data_service=data_status,
        summarizer=summarizer_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
