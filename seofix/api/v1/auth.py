"""Login and the role dependencies guarding the fix API (viewer < reviewer < admin)."""

import logging
from datetime import datetime, timezone
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from seofix.core.config import get_settings
from seofix.core.database import get_db
from seofix.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    create_access_token,
    decode_access_token,
    has_role,
    verify_password,
)
from seofix.models.user import ROLE_ADMIN, ROLE_REVIEWER, User
from seofix.schemas.auth import (
    CurrentUser,
    LoginRequest,
    TokenResponse,
    UserListItem,
    UsersListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

# Stand-in identity when AUTH_ENABLED is off (local development).
ANONYMOUS_ADMIN = CurrentUser(id=0, username="anonymous", role=ROLE_ADMIN)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_UNAUTHORIZED_HEADERS,
    )


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Send it as: Authorization: Bearer <access_token>
    """
    if not (PASSWORD_MIN_LEN <= len(body.password) <= PASSWORD_MAX_LEN):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid password length.",
        )
    user = db.query(User).filter(User.username == body.username.strip()).first()
    # Same answer for unknown, wrong-password and deactivated accounts.
    if user is None or not user.is_active or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )
    token = create_access_token(sub=user.id, role=user.role)
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Reviewer logged in", extra={"user_id": user.id, "role": user.role})
    return TokenResponse(access_token=token, token_type="bearer")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """
    Dependency: valid Bearer JWT required unless AUTH_ENABLED is off. Raises 401.

    The role is read from the account, not the token, so a demotion or
    deactivation takes effect before the token expires.
    """
    if not get_settings().AUTH_ENABLED:
        return ANONYMOUS_ADMIN
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        raise _unauthorized("Invalid or expired token") from e
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as e:
        raise _unauthorized("Invalid token payload") from e
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise _unauthorized("User not found")
    return CurrentUser(id=user.id, username=user.username, role=user.role)


def _require(minimum: str, detail: str):
    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if not has_role(current_user.role, minimum):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return current_user

    return dependency


# approve/apply/publish/reject and live WordPress writes
require_reviewer = _require(ROLE_REVIEWER, "Reviewer access required")
require_admin = _require(ROLE_ADMIN, "Admin access required")


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List reviewer accounts (admin only)."""
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(
        users=[
            UserListItem(
                id=u.id,
                username=u.username,
                role=u.role,
                is_active=u.is_active,
                last_login_at=u.last_login_at,
            )
            for u in users
        ]
    )
