"""Add fix_records: the fix ledger, one row per (audit, issue type, field).

Revision ID: 20260226200000
Revises: 20260226100000
Create Date: 2026-02-26

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20260226200000"
down_revision: Union[str, None] = "20260226100000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "fix_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("audit_id", sa.String(length=36), nullable=False),
        sa.Column("issue_type", sa.String(length=128), nullable=False),
        sa.Column("severity", sa.String(length=32), nullable=False, server_default="medium"),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("document_type", sa.String(length=128), nullable=False),
        sa.Column("document_id", sa.String(length=255), nullable=True),
        sa.Column("field_path", sa.String(length=512), nullable=False),
        sa.Column("current_value", sa.Text(), nullable=True),
        sa.Column("proposed_value", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["audit_id"], ["audits.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "audit_id",
            "issue_type",
            "field_path",
            name="uq_fix_records_dedupe_key",
        ),
    )
    op.create_index(op.f("ix_fix_records_audit_id"), "fix_records", ["audit_id"], unique=False)
    op.create_index(op.f("ix_fix_records_status"), "fix_records", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_fix_records_status"), table_name="fix_records")
    op.drop_index(op.f("ix_fix_records_audit_id"), table_name="fix_records")
    op.drop_table("fix_records")
