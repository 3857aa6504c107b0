"""
Manage reviewer accounts (there is no registration UI). Run from project root:
  python -m seofix.scripts.create_user USERNAME PASSWORD [role]
  python -m seofix.scripts.create_user USERNAME --deactivate
Example:
  python -m seofix.scripts.create_user alice a-long-password reviewer
"""
import argparse
import sys

from seofix.core.database import session_scope
from seofix.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    hash_password,
)
from seofix.models.user import ROLE_VIEWER, ROLES, User


def _deactivate(username: str) -> int:
    with session_scope() as db:
        user = db.query(User).filter(User.username == username).first()
        if user is None:
            print(f"User '{username}' not found.", file=sys.stderr)
            return 1
        user.is_active = False
        db.commit()
    print(f"Deactivated user '{username}'; issued tokens stop working immediately.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or deactivate a fix API user.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument(
        "password",
        nargs="?",
        help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars); required unless --deactivate",
    )
    parser.add_argument("role", nargs="?", default=ROLE_VIEWER, choices=ROLES)
    parser.add_argument("--deactivate", action="store_true", help="Disable an existing account")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if args.deactivate:
        return _deactivate(username)
    if args.password is None or not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    with session_scope() as db:
        if db.query(User).filter(User.username == username).first():
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        db.add(User(username=username, password_hash=hash_password(args.password), role=args.role))
        db.commit()
    print(f"Created user '{username}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
