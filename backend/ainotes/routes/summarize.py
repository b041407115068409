"""
AI Notes Backend: Summarize Proxy Route
========================================

What:  POST /api/summarize. Forwards a note's content to the Summarization
       Service and returns the summary.
Why:   The Summarization Service credential stays on the server; browsers
       only ever see this endpoint.

Request Flow:
    1. Credential check (500 "API key not configured." when absent)
    2. Body parse; anything other than a JSON object with a non-empty string
       `content` is a 400 "Invalid note content provided."
    3. One upstream call through the SummaryProvider, no retries
    4. 200 {"summary": ...} or the provider's error mapped by the global
       exception handlers (500 with the upstream status in the message)
"""

import logging

from fastapi import APIRouter, Depends, Request

from ainotes.dependencies import get_summarizer
from ainotes.exceptions import ConfigurationError
from ainotes.schemas.note import ErrorResponse, SummarizeRequest, SummarizeResponse
from ainotes.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Summarize"])


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    responses={
        400: {"description": "Missing or invalid note content", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Missing credential or upstream failure", "model": ErrorResponse},
    },
    summary="Summarize a note",
)
async def summarize_note(
    request: Request,
    summarizer: SummaryProvider = Depends(get_summarizer),
) -> SummarizeResponse:
    # Checked before the body is even read
    if not summarizer.is_configured:
        raise ConfigurationError(setting="GROQ_API_KEY")

    try:
        body = await request.json()
    except ValueError:
        body = None
    payload = SummarizeRequest.model_validate(body) if isinstance(body, dict) else SummarizeRequest()

    summary = await summarizer.summarize(payload.content)
    logger.info("Summary produced (%d chars)", len(summary))
    return SummarizeResponse(summary=summary)
