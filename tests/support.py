"""Shared test helpers: in-memory database sessions and a recording CMS adapter."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from seofix.models import Base, FixRecord
from seofix.schemas.audit import AuditCreateRequest
from seofix.services.audit_ingest import ingest_audit
from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import RemoteWriteError


def memory_session() -> Session:
    """Session on a fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def make_audit(db: Session, findings: list[dict[str, Any]], audit_id: str = "audit-1", **kwargs: Any) -> str:
    payload = {
        "audit_id": audit_id,
        "domain": kwargs.pop("domain", "acme.com"),
        "findings": findings,
        "pages": kwargs.pop(
            "pages",
            [
                {
                    "url": "https://acme.com/",
                    "title": "Acme Widgets | Quality tools for every workshop",
                    "meta_description": "Short blurb.",
                }
            ],
        ),
    }
    payload.update(kwargs)
    return ingest_audit(db, AuditCreateRequest.model_validate(payload)).id


class RecordingAdapter(CMSAdapter):
    """Draft-capable adapter that serves fixed snapshots and records every write."""

    platform = "fake"
    supports_drafts = True
    supports_document_writes = True

    def __init__(
        self,
        documents: dict[str, list[dict[str, Any]]] | None = None,
        fail_writes: bool = False,
    ) -> None:
        self.documents = documents or {}
        self.fail_writes = fail_writes
        self.fetched_types: list[str] = []
        self.draft_writes: list[tuple[str, dict]] = []
        self.published_writes: list[tuple[str, dict]] = []

    async def documents_by_type(self, document_type: str) -> list[dict[str, Any]]:
        self.fetched_types.append(document_type)
        return list(self.documents.get(document_type, []))

    async def patch_draft(self, document_id, fields):
        if self.fail_writes:
            raise RemoteWriteError("Sanity returned 400: Mutation failed", 400)
        self.draft_writes.append((document_id, {p.dotted: v for p, v in fields.items()}))
        return {"transactionId": "tx-draft"}

    async def patch_published(self, document_id, fields):
        if self.fail_writes:
            raise RemoteWriteError("Sanity returned 400: Mutation failed", 400)
        self.published_writes.append((document_id, {p.dotted: v for p, v in fields.items()}))
        return {"transactionId": "tx-live"}


def add_fix(db: Session, fix_id: str, status: str = "PENDING", severity: str = "medium", **kwargs: Any) -> FixRecord:
    """Insert a fix record directly, bypassing the generation pass."""
    fix = FixRecord(
        id=fix_id,
        audit_id=kwargs.pop("audit_id", "audit-1"),
        issue_type=kwargs.pop("issue_type", f"issue_{fix_id}"),
        severity=severity,
        title="Fix: test",
        document_type="seoSettings",
        document_id=kwargs.pop("document_id", "seo-1"),
        field_path=kwargs.pop("field_path", "metaDescription"),
        proposed_value=kwargs.pop("proposed_value", "Proposed"),
        status=status,
        created_at=kwargs.pop("created_at", datetime.now(timezone.utc)),
        **kwargs,
    )
    db.add(fix)
    db.commit()
    return fix
