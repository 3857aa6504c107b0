"""ORM models for audits produced by the crawl/audit pipeline (read-only to the fix engine)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from seofix.models.base import Base, JSONType


class Audit(Base):
    """One audit run against a site; owns its findings, crawled pages and fix records."""

    __tablename__ = "audits"

    id = Column(String(36), primary_key=True)
    domain = Column(String(255), nullable=False, index=True)
    target_url = Column(String(2048), nullable=False, default="")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AuditFinding(Base):
    """
    One SEO issue reported by an analyzer.

    evidence is a list of per-page dicts (usually with a "url" key);
    examples is a looser list of URLs or dicts kept as the analyzer sent it.
    """

    __tablename__ = "audit_findings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    audit_id = Column(
        String(36),
        ForeignKey("audits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_type = Column(String(128), nullable=False, index=True)
    severity = Column(String(32), nullable=False, default="medium")
    title = Column(String(512), nullable=False, default="")
    description = Column(Text, nullable=True)
    category = Column(String(64), nullable=True)
    evidence = Column(JSONType, nullable=True)
    examples = Column(JSONType, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AuditPage(Base):
    """A crawled page snapshot; the homepage row is the evidence for value proposals."""

    __tablename__ = "audit_pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    audit_id = Column(
        String(36),
        ForeignKey("audits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url = Column(String(2048), nullable=False)
    path = Column(String(2048), nullable=False, default="/")
    title = Column(Text, nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
