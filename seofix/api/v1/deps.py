"""Shared endpoint dependencies: the CMS adapter and engine error translation."""

from fastapi import HTTPException

from seofix.core.config import get_settings
from seofix.models import FixRecord
from seofix.schemas.fix import FixRecordOut
from seofix.services.cms_adapter import CMSAdapter, build_cms_adapter
from seofix.services.errors import (
    CMSRequestError,
    ConfigurationError,
    ConflictError,
    FixEngineError,
    InvalidStateError,
    InvalidValueError,
    NotFoundError,
    UnsupportedOperationError,
)
from seofix.services.fix_ledger import is_actionable

# First match wins; RemoteWriteError is a CMSRequestError.
_STATUS_BY_ERROR: tuple[tuple[type[FixEngineError], int], ...] = (
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (ConflictError, 409),
    (UnsupportedOperationError, 422),
    (InvalidValueError, 422),
    (ConfigurationError, 503),
    (CMSRequestError, 502),
)


def http_error(e: FixEngineError) -> HTTPException:
    """HTTPException carrying the engine error's message with its mapped status."""
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_cls):
            return HTTPException(status_code=status_code, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)


def get_cms_adapter() -> CMSAdapter:
    """Dependency: adapter for CMS_PLATFORM. 503 when its credentials are missing."""
    try:
        return build_cms_adapter(get_settings())
    except ConfigurationError as e:
        raise http_error(e) from e


def fix_out(fix: FixRecord) -> FixRecordOut:
    """Response model for a record, with the review UI's actionable flag."""
    out = FixRecordOut.model_validate(fix)
    out.actionable = is_actionable(fix.status)
    return out
