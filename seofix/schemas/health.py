"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service status, database connectivity and the configured CMS."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )
    cms_platform: str = Field(description="CMS the fix ledger writes to (sanity or wordpress)")
    cms_configured: bool = Field(
        default=False,
        description="True when credentials for the configured CMS are present",
    )
