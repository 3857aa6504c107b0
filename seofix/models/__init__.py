"""SQLAlchemy ORM models."""

from seofix.models.audit import Audit, AuditFinding, AuditPage
from seofix.models.base import Base
from seofix.models.fix_record import FixRecord
from seofix.models.user import User

__all__ = ["Audit", "AuditFinding", "AuditPage", "Base", "FixRecord", "User"]
