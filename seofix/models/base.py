"""SQLAlchemy declarative Base plus the column helpers shared by the ledger models."""

from collections.abc import Iterable

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


def in_clause(column: str, values: Iterable[str]) -> str:
    """SQL text for a CHECK constraint limiting column to fixed string values."""
    quoted = ", ".join("'" + v.replace("'", "''") + "'" for v in values)
    return f"{column} IN ({quoted})"


class Base(DeclarativeBase):
    pass
