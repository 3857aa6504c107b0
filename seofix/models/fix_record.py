"""ORM model for persisted fix proposals (the fix ledger)."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)

from seofix.models.base import Base


class FixRecord(Base):
    """
    One proposed change to one CMS field, with its review status.

    Rows are never deleted by the engine; they are the audit trail of what was
    proposed, approved and written. status changes go through
    seofix.services.fix_ledger only.

    field_path is the dotted form of a validated FieldPath.
    """

    __tablename__ = "fix_records"
    __table_args__ = (
        UniqueConstraint(
            "audit_id",
            "issue_type",
            "field_path",
            name="uq_fix_records_dedupe_key",
        ),
    )

    id = Column(String(36), primary_key=True)
    audit_id = Column(
        String(36),
        ForeignKey("audits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    issue_type = Column(String(128), nullable=False)
    severity = Column(String(32), nullable=False, default="medium")
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    document_type = Column(String(128), nullable=False)
    document_id = Column(String(255), nullable=True)
    field_path = Column(String(512), nullable=False)
    current_value = Column(Text, nullable=True)
    proposed_value = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="PENDING", index=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)
    applied_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
