# tests/services/auth/test_tokens_and_routes.py
"""
Тесты bearer-токенов и роутера /auth.
"""

from __future__ import annotations

from datetime import timedelta

import bcrypt
import pytest

from yaatrabuddy.common.errors import Unauthenticated
from yaatrabuddy.services.auth.tokens import sign_token, verify_token

from conftest import USER_EMAIL, USER_ID


class TestTokens:
    """Тесты для sign_token / verify_token."""

    def test_roundtrip(self) -> None:
        identity = verify_token(sign_token(USER_ID, USER_EMAIL))

        assert identity.subject_id == USER_ID
        assert identity.email == USER_EMAIL

    def test_expired(self) -> None:
        token = sign_token(USER_ID, USER_EMAIL, expires_in=timedelta(seconds=-5))

        with pytest.raises(Unauthenticated):
            verify_token(token)

    def test_wrong_secret(self) -> None:
        token = sign_token(USER_ID, USER_EMAIL, secret="another-secret")

        with pytest.raises(Unauthenticated):
            verify_token(token)

    def test_garbage(self) -> None:
        with pytest.raises(Unauthenticated):
            verify_token("not.a.jwt")

    def test_missing_subject(self) -> None:
        from jose import jwt

        token = jwt.encode({"email": USER_EMAIL}, "test-jwt-secret", algorithm="HS256")

        with pytest.raises(Unauthenticated):
            verify_token(token, secret="test-jwt-secret")


class TestAuthRoutes:
    """Тесты для /auth."""

    @staticmethod
    def _stored_user(password: str) -> dict:
        password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()
        return {"id": USER_ID, "email": USER_EMAIL, "password_hash": password_hash}

    def test_signin_success(self, api_client, fake_db) -> None:
        fake_db.fetchrow.return_value = self._stored_user("secret123")

        response = api_client.post("/auth/signin", json={"email": USER_EMAIL, "password": "secret123"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"] == {"id": USER_ID, "email": USER_EMAIL}
        assert verify_token(body["token"]).subject_id == USER_ID

    def test_signin_failures_are_indistinguishable(self, api_client, fake_db) -> None:
        fake_db.fetchrow.return_value = self._stored_user("secret123")
        wrong_password = api_client.post("/auth/signin", json={"email": USER_EMAIL, "password": "nope-nope"})

        fake_db.fetchrow.return_value = None
        unknown_email = api_client.post("/auth/signin", json={"email": "ghost@b.test", "password": "secret123"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"error": "Invalid email or password"}

    def test_signin_missing_fields(self, api_client) -> None:
        response = api_client.post("/auth/signin", json={"email": USER_EMAIL})

        assert response.status_code == 400
        assert response.json() == {"error": "Email and password are required"}

    def test_reset_request_is_generic(self, api_client, fake_db, mock_email_sender) -> None:
        fake_db.fetchrow.return_value = None

        response = api_client.post("/auth/request-password-reset", json={"email": "ghost@b.test"})

        assert response.status_code == 200
        assert response.json() == {
            "message": "If an account exists with this email, you will receive a password reset code."
        }
        mock_email_sender.send_password_reset.assert_not_called()

    def test_verify_reset_rejects_bad_otp(self, api_client) -> None:
        response = api_client.post(
            "/auth/verify-reset-token",
            json={"email": USER_EMAIL, "otp": "12ab56", "newPassword": "brand-new-pass"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid OTP format"}

    def test_ensure_admin_requires_token(self, api_client) -> None:
        response = api_client.post("/auth/admin/ensure-admin")

        assert response.status_code == 401

    def test_ensure_admin_for_regular_user(self, api_client, auth_headers, fake_db) -> None:
        response = api_client.post("/auth/admin/ensure-admin", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "isAdmin": False}
        fake_db.execute.assert_not_called()
