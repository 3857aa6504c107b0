"""Pydantic schemas for fix records and the review operations on them."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class FixStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    APPLIED = "APPLIED"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


class FixRecordOut(BaseModel):
    """A fix record as shown to the review surface."""

    model_config = {"from_attributes": True}

    id: str
    audit_id: str
    issue_type: str
    severity: str
    title: str
    description: str | None = None
    document_type: str
    document_id: str | None = None
    field_path: str
    current_value: str | None = None
    proposed_value: str
    status: FixStatus
    error_message: str | None = None
    actionable: bool = Field(
        default=False,
        description="True when the review UI should offer approve/apply/publish/reject.",
    )
    created_at: datetime | None = None
    applied_at: datetime | None = None
    published_at: datetime | None = None


class FixListResponse(BaseModel):
    """Response for GET /audits/{audit_id}/fixes."""

    fixes: list[FixRecordOut] = Field(default_factory=list)
    count: int = Field(..., ge=0)


class GenerateResponse(BaseModel):
    """Response for POST /audits/{audit_id}/fixes/generate."""

    audit_id: str
    generated: int = Field(..., ge=0, description="New PENDING records created by this run.")


class ApplyRequest(BaseModel):
    """Optional edited value for a draft write."""

    proposed_value: str | None = Field(
        default=None,
        min_length=1,
        max_length=5000,
        description="Edited value; replaces the stored proposal before the write.",
    )
    auto_approve: bool = Field(
        default=True,
        description="Approve PENDING or FAILED records as part of the apply.",
    )


class PublishRequest(BaseModel):
    """Optional edited value for a live write."""

    proposed_value: str | None = Field(default=None, min_length=1, max_length=5000)


class FixActionResponse(BaseModel):
    """Outcome of approve/reject/apply/publish."""

    fix: FixRecordOut
    message: str
    remote_write: bool = Field(
        default=False,
        description="True when this call wrote to the CMS.",
    )
