"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    tracked_files: int = Field(default=0, ge=0, description="Files in the current diff scope")
    reviewed_files: int = Field(default=0, ge=0, description="Files with at least one category status")
    backend: Literal["configured", "not_configured"] = Field(
        default="not_configured",
        description="Whether ANALYSIS_BACKEND_URL is set",
    )
