"""API request and response schemas."""

from typing import Any

from pydantic import BaseModel, Field


class SearchHistoryEntry(BaseModel):
    """One past weather search."""

    id: int = Field(..., description="Entry identifier, assigned by the store")
    city: str = Field(..., description="Resolved city name")
    date: str | None = Field(default=None, description="Requested date (YYYY-MM-DD)")
    time: str | None = Field(default=None, description="Requested time (HH or HH:MM)")
    createdAt: str = Field(..., description="When the search was recorded")  # noqa: N815


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(default=None, description="Upstream diagnostics")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")
