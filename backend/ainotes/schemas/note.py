"""
AI Notes Backend: Pydantic Schemas
===================================

What:  Pydantic models for note rows, API request/response bodies and errors.
Why:   Strict parsing of Data Service rows and a documented API contract.
Who:   Used by the Data Service client (row parsing), the summarize proxy
       route (request/response) and the Notes Client (cached notes).

Design Decision:
    Note rows come back from the Data Service as JSON. Parsing them into a
    frozen model at the client boundary means the rest of the app never
    handles raw dicts, and the Notes Client's snapshots can hold them safely.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Note rows
# ══════════════════════════════════════════════════════════════════════════


class Note(BaseModel):
    """
    What:  One row of the `notes` relation as returned by the Data Service.

    Why these fields:
        - id: Server-assigned key; used in every mutation and in form URLs
        - created_at: Server-assigned; drives newest-first ordering
        - user_id: Owner reference; ownership is enforced by the Data Service
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Server-assigned note identifier")
    title: str = Field(description="Short title")
    content: str = Field(description="Note body")
    created_at: datetime = Field(description="Creation timestamp (server-assigned)")
    user_id: str = Field(description="Owner's user id")

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> str:
        # bigint identity columns arrive as JSON numbers
        return str(v)


class NoteCreate(BaseModel):
    """Insert payload. Title and content are already trimmed and non-empty."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    user_id: str


class NoteUpdate(BaseModel):
    """Update payload. Only title and content are mutable."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Summarize proxy
# ══════════════════════════════════════════════════════════════════════════


class SummarizeRequest(BaseModel):
    """
    What:  Body of POST /api/summarize.

    `content` is typed loosely on purpose: a missing or non-string value must
    produce the proxy's own 400 message, not FastAPI's generic 422.
    """

    content: Any = Field(default=None, description="Note text to summarize")


class SummarizeResponse(BaseModel):
    summary: str = Field(description="Summary text produced by the model")


# ══════════════════════════════════════════════════════════════════════════
# Error / health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every JSON endpoint.

    Example:
        {"error": "Invalid note content provided.", "request_id": "a1b2c3d4"}
    """

    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and container probes.
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    data_service: str = Field(description="Data Service reachability: reachable, unreachable")
    summarizer: str = Field(description="Summarizer credential: configured, missing")
    uptime_seconds: float = Field(description="Seconds since service started")
