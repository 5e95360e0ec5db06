"""Pydantic schemas for the Web API.

Records stay free-form JSON objects; schemas only wrap them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# TABLE SCHEMAS
# =============================================================================


class RecordListResponse(BaseModel):
    """Response for the contents of one table."""

    table: str
    records: list[dict[str, Any]]
    count: int


class BulkImportRequest(BaseModel):
    """Request body for importing many students at once."""

    records: list[dict[str, Any]] = Field(..., min_length=1)


class BulkImportResponse(BaseModel):
    records: list[dict[str, Any]]
    count: int


# =============================================================================
# SYNC SCHEMAS
# =============================================================================


class ApiUrlRequest(BaseModel):
    """Request body for changing the spreadsheet endpoint."""

    url: str = Field(default="", max_length=2000)


class ApiUrlResponse(BaseModel):
    url: str
    enabled: bool


class SyncPullResponse(BaseModel):
    """Records applied per table by a full pull."""

    applied: dict[str, int]


class SyncEventResponse(BaseModel):
    operation: str
    table: str
    ok: bool
    action: str | None = None
    status_code: int | None = None
    error: str | None = None
    at: str


class SyncStatusResponse(BaseModel):
    enabled: bool
    pending: int
    recent: list[SyncEventResponse]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
