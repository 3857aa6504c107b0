"""Pydantic schemas for publish-only integration endpoints (WordPress single and bulk fixes)."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class BulkFixInstruction(BaseModel):
    """One field write against the page at target_url."""

    target_url: str = Field(..., min_length=1, max_length=2048)
    field: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Field kind: title or meta_description. Others are reported as unsupported.",
    )
    new_value: str = Field(..., min_length=1, max_length=500)

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        s = v.strip()
        if not (s.lower().startswith("http://") or s.lower().startswith("https://")):
            raise ValueError("target_url must be an absolute http(s) URL")
        return s


class SingleFixRequest(BulkFixInstruction):
    """A single live write; same shape as one bulk instruction."""


class WordPressEntityOut(BaseModel):
    id: int | str
    type: str
    title: str = ""


class SingleFixResponse(BaseModel):
    success: bool
    target_url: str
    field: str
    new_value: str
    entity: WordPressEntityOut
    updated: dict[str, Any] = Field(default_factory=dict)


class BulkFixRequest(BaseModel):
    """Instructions beyond the per-request cap are dropped, not rejected."""

    fixes: list[BulkFixInstruction] = Field(..., min_length=1)


class BulkFixItemResult(BaseModel):
    target_url: str
    field: str
    success: bool
    error: str | None = None


class BulkFixResponse(BaseModel):
    """Per-item outcome of a bulk run; success only when every processed item succeeded."""

    success: bool
    domain: str
    total: int = Field(..., ge=0, description="Items processed (after the cap).")
    applied: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    dropped: int = Field(default=0, ge=0, description="Items beyond the cap that were not processed.")
    results: list[BulkFixItemResult] = Field(default_factory=list)


class IntegrationCapabilities(BaseModel):
    update_title: bool = True
    update_meta_description: bool = False


class IntegrationStatusResponse(BaseModel):
    """Connectivity check for a publish-only integration."""

    domain: str
    platform: str = "wordpress"
    connected: bool
    seo_plugin: str | None = None
    user: dict[str, str | int | None] | None = None
    capabilities: IntegrationCapabilities = Field(default_factory=IntegrationCapabilities)
    error: str | None = None
