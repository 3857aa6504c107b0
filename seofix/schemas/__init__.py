"""Pydantic request/response schemas."""

from seofix.schemas.audit import (
    AuditCreateRequest,
    AuditCreateResponse,
    AuditFindingIn,
    AuditPageIn,
    SeverityLevel,
)
from seofix.schemas.fix import (
    ApplyRequest,
    FixActionResponse,
    FixListResponse,
    FixRecordOut,
    FixStatus,
    GenerateResponse,
    PublishRequest,
)
from seofix.schemas.health import HealthResponse
from seofix.schemas.integrations import (
    BulkFixInstruction,
    BulkFixItemResult,
    BulkFixRequest,
    BulkFixResponse,
    IntegrationStatusResponse,
)

__all__ = [
    "ApplyRequest",
    "AuditCreateRequest",
    "AuditCreateResponse",
    "AuditFindingIn",
    "AuditPageIn",
    "BulkFixInstruction",
    "BulkFixItemResult",
    "BulkFixRequest",
    "BulkFixResponse",
    "FixActionResponse",
    "FixListResponse",
    "FixRecordOut",
    "FixStatus",
    "GenerateResponse",
    "HealthResponse",
    "IntegrationStatusResponse",
    "PublishRequest",
    "SeverityLevel",
]
