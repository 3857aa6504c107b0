"""Apply (draft write) and publish (live write) for approved fixes.

Preconditions are checked before anything is mutated: the record exists, its
target document is known, the adapter has the needed write path and the value
fits the field. An edited value is persisted before the remote write, so the
value in the CMS is always the value on the record. A rejected write moves the record to FAILED and the
error is re-raised to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from seofix.models import FixRecord
from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import (
    InvalidStateError,
    NotFoundError,
    RemoteWriteError,
    UnsupportedOperationError,
)
from seofix.services.field_mapping import FieldKind, FieldPath, lookup
from seofix.services.fix_ledger import (
    APPLIED,
    APPROVED,
    FAILED,
    PENDING,
    PUBLISHED,
    can_transition,
    get_fix,
    record_failure,
    store_override,
    transition,
)

logger = logging.getLogger(__name__)


@dataclass
class WriteOutcome:
    fix: FixRecord
    remote_write: bool


def _require_document(fix: FixRecord) -> str:
    if not fix.document_id:
        raise NotFoundError(
            f"Fix {fix.id} has no target {fix.document_type} document in the CMS."
        )
    return fix.document_id


def _write_fields(fix: FixRecord, value: str) -> dict[FieldPath, Any]:
    """
    Field map for the CMS, with value coerced to the field's type.

    Raises InvalidValueError when value does not fit the field, e.g. anything
    but true/false for a robots index flag.
    """
    descriptor = lookup(fix.issue_type)
    kind = descriptor.kind if descriptor is not None else FieldKind.GUIDANCE
    return {FieldPath.parse(fix.field_path): kind.coerce(value)}


def _finish_after_write(
    db: Session,
    fix: FixRecord,
    target: str,
    action: str,
    document_id: str,
    **values: Any,
) -> FixRecord:
    """Record a successful remote write. The CMS already holds the value if this refuses."""
    try:
        return transition(db, fix, target, action=action, **values)
    except InvalidStateError as e:
        logger.warning(
            "CMS write succeeded but fix changed concurrently; CMS value left in place",
            extra={
                "fix_id": fix.id,
                "document_id": document_id,
                "field_path": fix.field_path,
                "actual_status": e.status,
                "action": action,
            },
        )
        raise


async def apply_fix(
    db: Session,
    adapter: CMSAdapter,
    fix_id: str,
    override: str | None = None,
    auto_approve: bool = True,
) -> WriteOutcome:
    """Write the proposal to the draft copy of the target document. The live document is untouched."""
    fix = get_fix(db, fix_id)
    if fix.status == APPLIED:
        if override is None or override == fix.proposed_value:
            return WriteOutcome(fix, remote_write=False)
        raise InvalidStateError(fix.id, fix.status, "change the value of")
    if fix.status not in (PENDING, APPROVED, FAILED):
        raise InvalidStateError(fix.id, fix.status, "apply")

    document_id = _require_document(fix)
    if not adapter.supports_drafts:
        raise UnsupportedOperationError(
            f"{adapter.platform} has no draft workflow; publish the fix instead."
        )
    fields = _write_fields(fix, override if override is not None else fix.proposed_value)

    if fix.status in (PENDING, FAILED):
        if not auto_approve:
            raise InvalidStateError(fix.id, fix.status, "apply")
        transition(db, fix, APPROVED, action="approve")
    if override is not None:
        store_override(db, fix, override, action="apply")

    try:
        await adapter.patch_draft(document_id, fields)
    except RemoteWriteError as e:
        record_failure(db, fix, e.message)
        logger.warning(
            "Draft write failed",
            extra={"fix_id": fix.id, "document_id": document_id, "status_code": e.status_code},
        )
        raise

    _finish_after_write(
        db,
        fix,
        APPLIED,
        "apply",
        document_id,
        applied_at=datetime.now(timezone.utc),
        error_message=None,
    )
    logger.info(
        "Fix applied to draft",
        extra={"fix_id": fix.id, "document_id": document_id, "field_path": fix.field_path},
    )
    return WriteOutcome(fix, remote_write=True)


async def publish_fix(
    db: Session,
    adapter: CMSAdapter,
    fix_id: str,
    override: str | None = None,
) -> WriteOutcome:
    """Write the proposal straight to the live document. Publishing twice writes once."""
    fix = get_fix(db, fix_id)
    if fix.status == PUBLISHED:
        if override is None or override == fix.proposed_value:
            return WriteOutcome(fix, remote_write=False)
        raise InvalidStateError(fix.id, fix.status, "change the value of")
    if not can_transition(fix.status, PUBLISHED):
        raise InvalidStateError(fix.id, fix.status, "publish")

    document_id = _require_document(fix)
    if not adapter.supports_document_writes:
        raise UnsupportedOperationError(
            f"{adapter.platform} does not support writing documents by id."
        )
    fields = _write_fields(fix, override if override is not None else fix.proposed_value)

    if override is not None:
        store_override(db, fix, override, action="publish")

    try:
        await adapter.patch_published(document_id, fields)
    except RemoteWriteError as e:
        record_failure(db, fix, e.message)
        logger.warning(
            "Live write failed",
            extra={"fix_id": fix.id, "document_id": document_id, "status_code": e.status_code},
        )
        raise

    now = datetime.now(timezone.utc)
    _finish_after_write(
        db,
        fix,
        PUBLISHED,
        "publish",
        document_id,
        published_at=now,
        applied_at=fix.applied_at or now,
        error_message=None,
    )
    logger.info(
        "Fix published",
        extra={"fix_id": fix.id, "document_id": document_id, "field_path": fix.field_path},
    )
    return WriteOutcome(fix, remote_write=True)
