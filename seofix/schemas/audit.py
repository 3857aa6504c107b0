"""Pydantic schemas for audits handed over by the crawl/audit pipeline."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# Reusable severity levels for validation and type safety across schemas.
SeverityLevel = Literal["critical", "high", "medium", "low", "info"]


class AuditFindingIn(BaseModel):
    """One analyzer finding. Severity is normalized on ingest, so any string is accepted here."""

    model_config = {"extra": "ignore"}

    issue_type: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Analyzer issue identifier, e.g. missing_meta_description.",
    )
    severity: str | None = Field(
        default=None,
        description="Severity label or alias; defaults to medium.",
    )
    title: str | None = Field(default=None, max_length=512)
    description: str | None = Field(default=None)
    category: str | None = Field(
        default=None,
        max_length=64,
        description="Analyzer category, e.g. TECHNICAL_SEO.",
    )
    evidence: list[dict[str, Any]] | None = Field(
        default=None,
        description="Per-page detail, usually objects with a 'url' key.",
    )
    examples: list[Any] | None = Field(
        default=None,
        description="Example URLs or objects as emitted by the analyzer.",
    )


class AuditPageIn(BaseModel):
    """A crawled page snapshot used as evidence for value proposals."""

    model_config = {"extra": "ignore"}

    url: str = Field(..., min_length=1, max_length=2048)
    title: str | None = Field(default=None)
    meta_description: str | None = Field(default=None)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        s = v.strip()
        if not (s.lower().startswith("http://") or s.lower().startswith("https://")):
            raise ValueError("url must be an absolute http(s) URL")
        return s


class AuditCreateRequest(BaseModel):
    """Audit payload: the site, its findings and its crawled pages."""

    audit_id: str | None = Field(
        default=None,
        max_length=36,
        description="Pipeline audit id; a UUID is generated when omitted.",
    )
    domain: str = Field(..., min_length=3, max_length=255, description="Site domain, e.g. example.com.")
    target_url: str | None = Field(default=None, max_length=2048)
    findings: list[AuditFindingIn] = Field(default_factory=list)
    pages: list[AuditPageIn] = Field(default_factory=list)

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        s = v.strip().lower()
        if "://" in s or "/" in s or " " in s or "." not in s:
            raise ValueError("domain must be a bare host name such as example.com")
        return s


class AuditCreateResponse(BaseModel):
    """Response after persisting an audit."""

    audit_id: str = Field(..., description="Id to pass to the fix generation endpoint.")
    findings: int = Field(..., ge=0, description="Number of findings stored.")
    pages: int = Field(..., ge=0, description="Number of crawled pages stored.")
