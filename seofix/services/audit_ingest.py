"""Persist audits handed over by the crawl/audit pipeline."""

import logging
import re
import uuid
from typing import Literal
from urllib.parse import urlsplit

from sqlalchemy.orm import Session

from seofix.models import Audit, AuditFinding, AuditPage
from seofix.schemas.audit import AuditCreateRequest, AuditFindingIn
from seofix.services.errors import ConflictError

logger = logging.getLogger(__name__)

SeverityLevel = Literal["critical", "high", "medium", "low", "info"]

_DEFAULT_SEVERITY: SeverityLevel = "medium"

# Severity aliases (case-insensitive) -> canonical level.
_SEVERITY_ALIASES: dict[str, SeverityLevel] = {
    "critical": "critical",
    "crit": "critical",
    "blocker": "critical",
    "high": "high",
    "major": "high",
    "error": "high",
    "medium": "medium",
    "med": "medium",
    "moderate": "medium",
    "warning": "medium",
    "low": "low",
    "minor": "low",
    "notice": "low",
    "info": "info",
    "informational": "info",
    "opportunity": "info",
}

# Ordering used when listing fixes: most severe first.
SEVERITY_RANK: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3, "info": 4}

_ISSUE_TYPE_SEPARATORS = re.compile(r"[\s\-]+")

MAX_FINDINGS_PER_AUDIT = 10_000
MAX_PAGES_PER_AUDIT = 10_000


def normalize_severity(raw_severity: str | None) -> SeverityLevel:
    """Map an analyzer severity label to the canonical level; unknown labels become medium."""
    if raw_severity and raw_severity.strip():
        normalized = raw_severity.strip().lower()
        if normalized in _SEVERITY_ALIASES:
            return _SEVERITY_ALIASES[normalized]
    return _DEFAULT_SEVERITY


def normalize_issue_type(raw: str) -> str:
    """'Missing Meta-Description' -> 'missing_meta_description'."""
    return _ISSUE_TYPE_SEPARATORS.sub("_", raw.strip()).lower()


def page_path(url: str) -> str:
    """Path component of a crawled URL, '/' for the site root."""
    path = urlsplit(url).path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _finding_row(audit_id: str, finding: AuditFindingIn) -> AuditFinding:
    issue_type = normalize_issue_type(finding.issue_type)
    return AuditFinding(
        audit_id=audit_id,
        issue_type=issue_type,
        severity=normalize_severity(finding.severity),
        title=(finding.title or "").strip()[:512] or issue_type.replace("_", " "),
        description=finding.description,
        category=finding.category,
        evidence=finding.evidence,
        examples=finding.examples,
    )


def ingest_audit(db: Session, payload: AuditCreateRequest) -> Audit:
    """
    Store an audit with its findings and crawled pages in one transaction.

    Raises ConflictError when the audit id is already taken and ValueError
    when the payload exceeds the per-audit limits.
    """
    if len(payload.findings) > MAX_FINDINGS_PER_AUDIT:
        raise ValueError(f"At most {MAX_FINDINGS_PER_AUDIT} findings per audit.")
    if len(payload.pages) > MAX_PAGES_PER_AUDIT:
        raise ValueError(f"At most {MAX_PAGES_PER_AUDIT} pages per audit.")

    audit_id = payload.audit_id or str(uuid.uuid4())
    if db.query(Audit.id).filter(Audit.id == audit_id).first() is not None:
        raise ConflictError(f"Audit {audit_id} already exists.")

    audit = Audit(
        id=audit_id,
        domain=payload.domain,
        target_url=payload.target_url or f"https://{payload.domain}/",
    )
    db.add(audit)
    db.flush()
    for finding in payload.findings:
        db.add(_finding_row(audit_id, finding))
    for page in payload.pages:
        db.add(
            AuditPage(
                audit_id=audit_id,
                url=page.url,
                path=page_path(page.url),
                title=page.title,
                meta_description=page.meta_description,
            )
        )
    db.commit()
    logger.info(
        "Audit ingested",
        extra={
            "audit_id": audit_id,
            "domain": payload.domain,
            "findings": len(payload.findings),
            "pages": len(payload.pages),
        },
    )
    return audit
