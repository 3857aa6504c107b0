"""Fix ledger: the status machine for persisted fix records.

Every status change goes through transition(), which checks the transition
table and then writes with a compare-and-set on the status the caller last
saw. A concurrent change makes the update match no rows; the caller gets an
InvalidStateError naming the status actually stored and nothing is written.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from seofix.models import Audit, FixRecord
from seofix.schemas.fix import FixStatus
from seofix.services.audit_ingest import SEVERITY_RANK
from seofix.services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

PENDING = FixStatus.PENDING.value
APPROVED = FixStatus.APPROVED.value
APPLIED = FixStatus.APPLIED.value
PUBLISHED = FixStatus.PUBLISHED.value
REJECTED = FixStatus.REJECTED.value
FAILED = FixStatus.FAILED.value

# Statuses for which the review UI offers approve/apply/publish/reject.
ACTIONABLE_STATUSES = frozenset({PENDING, APPROVED, FAILED})

TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({APPROVED, PUBLISHED, REJECTED, FAILED}),
    APPROVED: frozenset({APPLIED, PUBLISHED, REJECTED, FAILED}),
    APPLIED: frozenset({PUBLISHED, REJECTED, FAILED}),
    FAILED: frozenset({APPROVED, PUBLISHED, REJECTED, FAILED}),
    PUBLISHED: frozenset(),
    REJECTED: frozenset(),
}

MAX_ERROR_MESSAGE_LENGTH = 2000


def is_actionable(status: str) -> bool:
    return status in ACTIONABLE_STATUSES


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_fix(db: Session, fix_id: str) -> FixRecord:
    fix = db.query(FixRecord).filter(FixRecord.id == fix_id).first()
    if fix is None:
        raise NotFoundError(f"Fix {fix_id} not found.")
    return fix


def list_fixes(db: Session, audit_id: str, status: str | None = None) -> list[FixRecord]:
    """Fixes for an audit, most severe first, then oldest first."""
    if db.query(Audit.id).filter(Audit.id == audit_id).first() is None:
        raise NotFoundError(f"Audit {audit_id} not found.")
    query = db.query(FixRecord).filter(FixRecord.audit_id == audit_id)
    if status:
        query = query.filter(FixRecord.status == status)
    fixes = query.order_by(FixRecord.created_at, FixRecord.id).all()
    # Stable sort keeps creation order inside one severity.
    return sorted(fixes, key=lambda f: SEVERITY_RANK.get(f.severity, len(SEVERITY_RANK)))


def _compare_and_set(
    db: Session,
    fix: FixRecord,
    expected: str,
    values: dict[str, Any],
    action: str,
) -> FixRecord:
    rows = (
        db.query(FixRecord)
        .filter(FixRecord.id == fix.id, FixRecord.status == expected)
        .update(values, synchronize_session=False)
    )
    if rows != 1:
        db.rollback()
        actual = db.query(FixRecord.status).filter(FixRecord.id == fix.id).scalar()
        logger.info(
            "Fix changed concurrently; update refused",
            extra={"fix_id": fix.id, "expected": expected, "actual": actual, "action": action},
        )
        raise InvalidStateError(fix.id, actual, action)
    db.commit()
    db.refresh(fix)
    return fix


def transition(
    db: Session,
    fix: FixRecord,
    target: str,
    action: str,
    **values: Any,
) -> FixRecord:
    """
    Move fix to target, writing any extra column values in the same update.

    Raises InvalidStateError when the table forbids the move or the stored
    status no longer matches fix.status.
    """
    current = fix.status
    if not can_transition(current, target):
        raise InvalidStateError(fix.id, current, action)
    updated = _compare_and_set(
        db,
        fix,
        current,
        {"status": target, "updated_at": _now(), **values},
        action,
    )
    logger.info(
        "Fix status changed",
        extra={"fix_id": fix.id, "from_status": current, "to_status": target, "action": action},
    )
    return updated


def store_override(db: Session, fix: FixRecord, value: str, action: str) -> FixRecord:
    """Persist an edited proposal, guarded by the status the caller last saw."""
    if value == fix.proposed_value:
        return fix
    return _compare_and_set(
        db,
        fix,
        fix.status,
        {"proposed_value": value, "updated_at": _now()},
        action,
    )


def record_failure(db: Session, fix: FixRecord, message: str) -> bool:
    """Move fix to FAILED with the reason. Returns False if the record changed underneath us."""
    try:
        transition(
            db,
            fix,
            FAILED,
            action="record failure for",
            error_message=message[:MAX_ERROR_MESSAGE_LENGTH],
        )
    except InvalidStateError as e:
        logger.error(
            "Could not record fix failure",
            extra={"fix_id": fix.id, "reason": e.message},
        )
        return False
    return True


def approve(db: Session, fix_id: str) -> FixRecord:
    fix = get_fix(db, fix_id)
    if fix.status != PENDING:
        raise InvalidStateError(fix.id, fix.status, "approve")
    return transition(db, fix, APPROVED, action="approve")


def reject(db: Session, fix_id: str) -> FixRecord:
    """Reject any fix that is not yet live. Rejecting twice is a no-op."""
    fix = get_fix(db, fix_id)
    if fix.status == REJECTED:
        return fix
    return transition(db, fix, REJECTED, action="reject")
