"""Tests for reviewer roles, tokens and account state on the auth endpoints."""

import asyncio
import json
import unittest
from unittest.mock import MagicMock, patch

import jwt
from fastapi.testclient import TestClient
from support import memory_session

from seofix.core.config import settings
from seofix.core.database import get_db
from seofix.core.security import (
    create_access_token,
    decode_access_token,
    has_role,
    hash_password,
    verify_password,
)
from seofix.main import app, fix_engine_error_handler
from seofix.models import User
from seofix.services.errors import InvalidValueError, NotFoundError


class TestRoles(unittest.TestCase):
    def test_ordering(self) -> None:
        self.assertTrue(has_role("admin", "reviewer"))
        self.assertTrue(has_role("reviewer", "reviewer"))
        self.assertFalse(has_role("viewer", "reviewer"))
        self.assertTrue(has_role("viewer", "viewer"))

    def test_unknown_role_has_no_rights(self) -> None:
        self.assertFalse(has_role("superuser", "viewer"))

    def test_unknown_minimum_is_a_programming_error(self) -> None:
        with self.assertRaises(ValueError):
            has_role("admin", "owner")


class TestPasswords(unittest.TestCase):
    @patch("seofix.core.security.BCRYPT_ROUNDS", 4)
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("a-long-password")
        self.assertTrue(verify_password("a-long-password", hashed))
        self.assertFalse(verify_password("wrong-password", hashed))

    def test_missing_or_malformed_hash(self) -> None:
        self.assertFalse(verify_password("a-long-password", None))
        self.assertFalse(verify_password("a-long-password", "not-a-bcrypt-hash"))


class TestTokens(unittest.TestCase):
    def test_claims(self) -> None:
        payload = decode_access_token(create_access_token(7, "reviewer"))
        self.assertEqual((payload["sub"], payload["role"]), ("7", "reviewer"))

    def test_unknown_role_not_issued(self) -> None:
        with self.assertRaises(ValueError):
            create_access_token(7, "superuser")

    def test_unknown_role_claim_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "7", "role": "superuser", "exp": 4102444800},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with self.assertRaises(jwt.InvalidTokenError):
            decode_access_token(token)

    def test_expired(self) -> None:
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(create_access_token(7, "viewer", expires_minutes=-1))


@patch("seofix.core.security.BCRYPT_ROUNDS", 4)
class TestAuthEndpoints(unittest.TestCase):
    def setUp(self) -> None:
        self.db = memory_session()
        app.dependency_overrides[get_db] = lambda: self.db
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()

    def _add_user(self, username: str, role: str = "reviewer", is_active: bool = True) -> User:
        user = User(
            username=username,
            password_hash=hash_password("a-long-password"),
            role=role,
            is_active=is_active,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def _login(self, username: str):
        return self.client.post("/api/v1/auth", json={"username": username, "password": "a-long-password"})

    def test_login_records_last_login(self) -> None:
        user = self._add_user("rita")
        resp = self._login("rita")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(decode_access_token(resp.json()["access_token"])["role"], "reviewer")
        self.db.refresh(user)
        self.assertIsNotNone(user.last_login_at)

    def test_deactivated_account_cannot_log_in(self) -> None:
        self._add_user("gone", is_active=False)
        resp = self._login("gone")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Invalid username or password.")

    @patch("seofix.api.v1.auth.get_settings")
    def test_token_stops_working_after_deactivation(self, get_settings_mock: MagicMock) -> None:
        get_settings_mock.return_value = MagicMock(AUTH_ENABLED=True)
        user = self._add_user("rita")
        headers = {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
        # Authenticated: the fix does not exist.
        self.assertEqual(self.client.get("/api/v1/fixes/nope", headers=headers).status_code, 404)
        user.is_active = False
        self.db.commit()
        self.assertEqual(self.client.get("/api/v1/fixes/nope", headers=headers).status_code, 401)

    @patch("seofix.api.v1.auth.get_settings")
    def test_role_read_from_account(self, get_settings_mock: MagicMock) -> None:
        get_settings_mock.return_value = MagicMock(AUTH_ENABLED=True)
        user = self._add_user("rita")
        headers = {"Authorization": f"Bearer {create_access_token(user.id, 'reviewer')}"}
        user.role = "viewer"
        self.db.commit()
        resp = self.client.post("/api/v1/fixes/nope/approve", headers=headers)
        self.assertEqual(resp.status_code, 403)

    @patch("seofix.api.v1.auth.get_settings")
    def test_user_listing_needs_admin(self, get_settings_mock: MagicMock) -> None:
        get_settings_mock.return_value = MagicMock(AUTH_ENABLED=True)
        admin = self._add_user("ada", role="admin")
        self._add_user("rita", is_active=False)
        resp = self.client.get(
            "/api/v1/auth/users",
            headers={"Authorization": f"Bearer {create_access_token(admin.id, 'admin')}"},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        users = {u["username"]: u for u in resp.json()["users"]}
        self.assertFalse(users["rita"]["is_active"])
        self.assertEqual(users["ada"]["role"], "admin")


class TestEngineErrorHandler(unittest.TestCase):
    def test_mapped_status(self) -> None:
        request = MagicMock()
        request.url.path = "/api/v1/fixes/f1/publish"
        resp = asyncio.run(fix_engine_error_handler(request, InvalidValueError("bad value")))
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(json.loads(resp.body), {"detail": "bad value"})
        resp = asyncio.run(fix_engine_error_handler(request, NotFoundError("Fix f1 not found.")))
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
