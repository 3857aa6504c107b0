"""Fix generation pass: turn an audit's findings into PENDING fix records.

The pass reads one snapshot document per CMS document type, proposes a value
for every mapped finding and stores the new records in a single
conflict-tolerant insert. Running it again for the same audit creates nothing
new: the unique constraint on (audit_id, issue_type, field_path) is the
guarantee, the pre-loaded key set only saves work.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from seofix.models import Audit, AuditFinding, AuditPage, FixRecord
from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import NotFoundError
from seofix.services.field_mapping import FixTarget, targets_for
from seofix.services.fix_ledger import PENDING
from seofix.services.value_proposals import AuditContext, SiteEvidence, propose

logger = logging.getLogger(__name__)

# Rows per INSERT statement; keeps SQLite under its bound-parameter limit.
INSERT_BATCH_SIZE = 500

DedupeKey = tuple[str, str]


def _homepage(pages: list[AuditPage]) -> AuditPage | None:
    for page in pages:
        if page.path == "/":
            return page
    return pages[0] if pages else None


def _as_text(value: Any) -> str | None:
    """Render a CMS field value the way it is stored on the record."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def _is_noop(proposal: str, current: str | None) -> bool:
    return current is not None and proposal.strip() == current.strip()


def _record_title(finding: AuditFinding, target: FixTarget) -> str:
    if target.issue_type == finding.issue_type and finding.title:
        label = finding.title
    else:
        label = target.issue_type.replace("_", " ")
    return f"Fix: {label}"[:512]


async def _load_snapshots(
    adapter: CMSAdapter, document_types: set[str]
) -> dict[str, dict[str, Any] | None]:
    """First published document per type; None when the CMS has none of that type."""
    snapshots: dict[str, dict[str, Any] | None] = {}
    for document_type in sorted(document_types):
        documents = await adapter.documents_by_type(document_type)
        snapshots[document_type] = documents[0] if documents else None
    return snapshots


def _rows_for_finding(
    finding: AuditFinding,
    targets: tuple[FixTarget, ...],
    snapshots: dict[str, dict[str, Any] | None],
    context: AuditContext,
    evidence: SiteEvidence,
    seen: set[DedupeKey],
    now: datetime,
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for target in targets:
        descriptor = target.descriptor
        key = (target.issue_type, descriptor.field_path.dotted)
        if key in seen:
            continue
        snapshot = snapshots.get(descriptor.document_type)
        current = _as_text(CMSAdapter.field_value(snapshot, descriptor.field_path))
        proposal = propose(target.issue_type, descriptor, context, evidence, current)
        if proposal is None or _is_noop(proposal, current):
            continue
        rows.append(
            {
                "id": str(uuid.uuid4()),
                "audit_id": finding.audit_id,
                "issue_type": target.issue_type,
                "severity": finding.severity or "medium",
                "title": _record_title(finding, target),
                "description": finding.description,
                "document_type": descriptor.document_type,
                "document_id": snapshot.get("_id") if snapshot else None,
                "field_path": descriptor.field_path.dotted,
                "current_value": current,
                "proposed_value": proposal,
                "status": PENDING,
                "created_at": now,
                "updated_at": now,
            }
        )
    return rows


def _insert_rows(db: Session, rows: list[dict[str, Any]]) -> int:
    """Insert rows, skipping dedupe-key conflicts. Returns how many were actually inserted."""
    if not rows:
        return 0
    dialect = db.get_bind().dialect.name
    inserted = 0
    if dialect in ("postgresql", "sqlite"):
        dialect_insert = pg_insert if dialect == "postgresql" else sqlite_insert
        for start in range(0, len(rows), INSERT_BATCH_SIZE):
            stmt = (
                dialect_insert(FixRecord)
                .values(rows[start:start + INSERT_BATCH_SIZE])
                .on_conflict_do_nothing()
                .returning(FixRecord.id)
            )
            inserted += len(db.execute(stmt).scalars().all())
    else:
        for row in rows:
            try:
                with db.begin_nested():
                    db.execute(insert(FixRecord).values(**row))
            except IntegrityError:
                # Same dedupe key inserted by a concurrent run.
                continue
            inserted += 1
    db.commit()
    return inserted


async def generate_fixes(db: Session, adapter: CMSAdapter, audit_id: str) -> int:
    """
    Create PENDING fix records for every auto-fixable finding of an audit.

    Returns the number of records created by this run (0 on a re-run).
    Raises NotFoundError for an unknown audit and CMSRequestError when a
    snapshot cannot be read; in both cases nothing is written.
    """
    audit = db.query(Audit).filter(Audit.id == audit_id).first()
    if audit is None:
        raise NotFoundError(f"Audit {audit_id} not found.")
    findings = (
        db.query(AuditFinding)
        .filter(AuditFinding.audit_id == audit_id)
        .order_by(AuditFinding.id)
        .all()
    )
    pages = db.query(AuditPage).filter(AuditPage.audit_id == audit_id).order_by(AuditPage.id).all()

    planned = [(finding, targets_for(finding.issue_type)) for finding in findings]
    planned = [(finding, targets) for finding, targets in planned if targets]
    if not planned:
        logger.info(
            "No auto-fixable findings",
            extra={"audit_id": audit_id, "findings": len(findings)},
        )
        return 0

    document_types = {t.descriptor.document_type for _, targets in planned for t in targets}
    snapshots = await _load_snapshots(adapter, document_types)

    homepage = _homepage(pages)
    evidence = SiteEvidence(
        title=homepage.title if homepage else None,
        meta_description=homepage.meta_description if homepage else None,
    )
    context = AuditContext(domain=audit.domain)

    seen: set[DedupeKey] = {
        (issue_type, field_path)
        for issue_type, field_path in db.query(FixRecord.issue_type, FixRecord.field_path)
        .filter(FixRecord.audit_id == audit_id)
        .all()
    }
    now = datetime.now(timezone.utc)
    staged: list[dict[str, Any]] = []
    skipped = 0
    for finding, targets in planned:
        try:
            rows = _rows_for_finding(finding, targets, snapshots, context, evidence, seen, now)
        except Exception:
            skipped += 1
            logger.warning(
                "Could not build fix for finding; skipping",
                extra={"audit_id": audit_id, "issue_type": finding.issue_type},
                exc_info=True,
            )
            continue
        for row in rows:
            seen.add((row["issue_type"], row["field_path"]))
        staged.extend(rows)

    created = _insert_rows(db, staged)
    logger.info(
        "Fix generation finished",
        extra={
            "audit_id": audit_id,
            "platform": adapter.platform,
            "mapped_findings": len(planned),
            "staged": len(staged),
            "created_records": created,
            "skipped_findings": skipped,
        },
    )
    return created
