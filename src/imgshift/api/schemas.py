"""Pydantic response schemas for the imgshift API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    active_jobs: int
    queue_depth: int
    max_concurrent: int


class FormatPolicyInfo(BaseModel):
    """Encode parameters applied to one output format."""

    format: str
    mime_type: str
    quality: int | None = Field(default=None, ge=0, le=100)
    lossless: bool | None = None
    compression_level: int | None = Field(default=None, ge=0, le=9)
    palette: bool | None = None
    colors: int | None = None


class FormatsResponse(BaseModel):
    """Accepted format names and the encode policy of each output format."""

    allowed: list[str]
    policies: list[FormatPolicyInfo]
