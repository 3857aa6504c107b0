"""ORM model for reviewer accounts (auth and role checks on the fix API)."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String, func

from seofix.models.base import Base, in_clause

ROLE_VIEWER = "viewer"
ROLE_REVIEWER = "reviewer"
ROLE_ADMIN = "admin"
# Least to most privileged.
ROLES = (ROLE_VIEWER, ROLE_REVIEWER, ROLE_ADMIN)


class User(Base):
    """
    Account allowed to use the fix API.

    role is one of ROLES; the database refuses anything else. A deactivated account keeps its row (fix history stays attributable)
    but can no longer log in or use an issued token.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint(in_clause("role", ROLES), name="ck_users_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_VIEWER)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)
