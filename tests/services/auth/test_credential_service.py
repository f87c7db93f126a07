# tests/services/auth/test_credential_service.py
"""
Тесты хранилища учётных данных: регистрация, вход, сброс пароля.
"""

from __future__ import annotations

import asyncio
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import patch

import pytest

from yaatrabuddy.common.constants import GENERIC_RESET_MESSAGE, UserRole
from yaatrabuddy.common.errors import InvalidArgument, Unauthenticated
from yaatrabuddy.config.loader import AuthSettings
from yaatrabuddy.services.auth.passwords import hash_otp, hash_password, verify_password
from yaatrabuddy.services.auth.repository import CredentialRepository
from yaatrabuddy.services.auth.service import (
    INVALID_CREDENTIALS,
    RESET_SUCCESS_MESSAGE,
    CredentialService,
)
from yaatrabuddy.services.auth.tokens import verify_token
from yaatrabuddy.shared.models.auth import Identity


class InMemoryCredentials:
    """Репозиторий учётных данных в памяти с тем же интерфейсом."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.roles: set[tuple[str, str]] = set()
        self.tokens: list[dict[str, Any]] = []
        self.cleanups = 0

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        return self.users.get(email)

    async def create_user(self, user_id, email, password_hash, full_name, role=None) -> None:
        self.users[email] = {"id": user_id, "email": email, "password_hash": password_hash, "full_name": full_name}
        if role is not None:
            self.roles.add((user_id, role.value))

    async def update_password(self, user_id: str, password_hash: str) -> None:
        for user in self.users.values():
            if user["id"] == user_id:
                user["password_hash"] = password_hash

    async def grant_role(self, user_id: str, role: UserRole) -> None:
        self.roles.add((user_id, role.value))

    async def replace_reset_token(self, email, token_hash, expires_at) -> None:
        for token in self.tokens:
            if token["email"] == email:
                token["used"] = True
        self.tokens.append(
            {
                "id": len(self.tokens) + 1,
                "email": email,
                "token_hash": token_hash,
                "expires_at": expires_at,
                "attempts": 0,
                "used": False,
            }
        )

    async def get_active_reset_token(self, email: str) -> dict[str, Any] | None:
        # Круговой проход до базы: даём поработать параллельным запросам
        await asyncio.sleep(0)
        now = datetime.now(timezone.utc)
        active = [t for t in self.tokens if t["email"] == email and not t["used"] and t["expires_at"] > now]
        return dict(active[-1]) if active else None

    def _token(self, token_id) -> dict[str, Any]:
        return next(t for t in self.tokens if t["id"] == token_id)

    async def mark_token_used(self, token_id) -> None:
        self._token(token_id)["used"] = True

    async def claim_reset_attempt(self, token_id, max_attempts: int) -> int | None:
        token = self._token(token_id)
        if token["used"] or token["expires_at"] <= datetime.now(timezone.utc) or token["attempts"] >= max_attempts:
            return None
        token["attempts"] += 1
        return token["attempts"]

    async def complete_reset(self, email, password_hash, token_id) -> bool:
        token = self._token(token_id)
        if token["used"]:
            return False
        token["used"] = True
        self.users[email]["password_hash"] = password_hash
        return True

    async def cleanup_expired_reset_tokens(self) -> None:
        self.cleanups += 1


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(JWT_SECRET="test-jwt-secret", BCRYPT_ROUNDS=4, RESET_MAX_ATTEMPTS=5)


@pytest.fixture
def repository() -> InMemoryCredentials:
    return InMemoryCredentials()


@pytest.fixture
def service(repository, mock_email_sender, auth_settings) -> CredentialService:
    return CredentialService(repository, mock_email_sender, auth_settings)


async def issue_code(service: CredentialService, mock_email_sender, email: str) -> str:
    await service.request_password_reset(email)
    return mock_email_sender.send_password_reset.await_args.args[1]


class TestPasswords:
    @pytest.mark.asyncio
    async def test_hash_and_verify(self) -> None:
        hashed = await hash_password("secret123", rounds=4)

        assert hashed != "secret123"
        assert await verify_password("secret123", hashed) is True
        assert await verify_password("wrong", hashed) is False

    @pytest.mark.asyncio
    async def test_missing_hash(self) -> None:
        assert await verify_password("anything", None) is False

    def test_otp_hash_is_sha256_hex(self) -> None:
        assert len(hash_otp("123456")) == 64
        assert hash_otp("123456") != hash_otp("123457")


class TestSignupSignin:
    """Регистрация и вход."""

    @pytest.mark.asyncio
    async def test_signup_then_signin(self, service, repository) -> None:
        signup = await service.signup("  Student@Example.com ", "secret123", "Asha Patel")

        assert signup.user.email == "student@example.com"
        assert uuid.UUID(signup.user.id)
        assert verify_token(signup.token).subject_id == signup.user.id
        assert repository.users["student@example.com"]["password_hash"] != "secret123"

        signin = await service.signin("student@example.com", "secret123")
        assert signin.user.id == signup.user.id

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service) -> None:
        await service.signup("a@b.test", "secret123", "A")

        with pytest.raises(InvalidArgument, match="This email is already registered"):
            await service.signup("A@B.test", "secret456", "B")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email, password, full_name",
        [(None, "secret123", "A"), ("a@b.test", None, "A"), ("a@b.test", "secret123", "   ")],
    )
    async def test_signup_required_fields(self, service, email, password, full_name) -> None:
        with pytest.raises(InvalidArgument, match="Email, password, and full_name are required"):
            await service.signup(email, password, full_name)

    @pytest.mark.asyncio
    async def test_short_password(self, service) -> None:
        with pytest.raises(InvalidArgument, match="Password must be at least 6 characters"):
            await service.signup("a@b.test", "12345", "A")

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_identical(self, service) -> None:
        await service.signup("a@b.test", "secret123", "A")

        with pytest.raises(Unauthenticated) as wrong_password:
            await service.signin("a@b.test", "not-the-password")
        with pytest.raises(Unauthenticated) as unknown_email:
            await service.signin("nobody@b.test", "secret123")

        assert wrong_password.value.message == unknown_email.value.message == INVALID_CREDENTIALS
        assert wrong_password.value.status_code == unknown_email.value.status_code == 401


class TestPasswordReset:
    """Сброс пароля по одноразовому коду."""

    @pytest.mark.asyncio
    async def test_generic_message_for_unknown_email(self, service, mock_email_sender) -> None:
        message = await service.request_password_reset("ghost@b.test")

        assert message == GENERIC_RESET_MESSAGE
        mock_email_sender.send_password_reset.assert_not_called()

    @pytest.mark.asyncio
    async def test_generic_message_when_delivery_fails(self, service, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        mock_email_sender.send_password_reset.side_effect = RuntimeError("smtp down")

        assert await service.request_password_reset("a@b.test") == GENERIC_RESET_MESSAGE

    @pytest.mark.asyncio
    async def test_only_hash_is_stored(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")

        code = await issue_code(service, mock_email_sender, "a@b.test")

        assert len(code) == 6 and code.isdigit()
        assert repository.tokens[-1]["token_hash"] == hash_otp(code)

    @pytest.mark.asyncio
    async def test_new_code_invalidates_previous(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")

        await issue_code(service, mock_email_sender, "a@b.test")
        await issue_code(service, mock_email_sender, "a@b.test")

        assert [t["used"] for t in repository.tokens] == [True, False]

    @pytest.mark.asyncio
    async def test_successful_reset(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")

        message = await service.verify_reset_token("a@b.test", code, "brand-new-pass")

        assert message == RESET_SUCCESS_MESSAGE
        assert repository.tokens[-1]["used"] is True
        assert repository.cleanups == 1
        await service.signin("a@b.test", "brand-new-pass")

    @pytest.mark.asyncio
    async def test_lockout_after_repeated_wrong_codes(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")
        wrong = "000000" if code != "000000" else "111111"

        messages = []
        for _ in range(5):
            with pytest.raises(InvalidArgument) as exc:
                await service.verify_reset_token("a@b.test", wrong, "brand-new-pass")
            messages.append(exc.value.message)

        assert messages == [
            "Invalid code. 4 attempts remaining.",
            "Invalid code. 3 attempts remaining.",
            "Invalid code. 2 attempts remaining.",
            "Invalid code. 1 attempt remaining.",
            "Invalid code. 0 attempts remaining.",
        ]

        # Даже верный код больше не принимается
        with pytest.raises(InvalidArgument, match="Too many failed attempts"):
            await service.verify_reset_token("a@b.test", code, "brand-new-pass")
        with pytest.raises(InvalidArgument, match="Invalid or expired reset code"):
            await service.verify_reset_token("a@b.test", code, "brand-new-pass")

    @pytest.mark.asyncio
    async def test_seventh_attempt_fails_with_correct_code(self, service, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")
        wrong = "000000" if code != "000000" else "111111"

        for _ in range(6):
            with pytest.raises(InvalidArgument):
                await service.verify_reset_token("a@b.test", wrong, "brand-new-pass")

        with pytest.raises(InvalidArgument):
            await service.verify_reset_token("a@b.test", code, "brand-new-pass")
        await service.signin("a@b.test", "secret123")

    @pytest.mark.asyncio
    async def test_concurrent_guesses_respect_attempt_ceiling(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")
        guesses = [f"{n:06d}" for n in range(60) if f"{n:06d}" != code][:50]

        with patch(
            "yaatrabuddy.services.auth.service.hmac.compare_digest", wraps=hmac.compare_digest
        ) as compare:
            results = await asyncio.gather(
                *(service.verify_reset_token("a@b.test", guess, "brand-new-pass") for guess in guesses),
                return_exceptions=True,
            )

        assert all(isinstance(r, InvalidArgument) for r in results)
        assert compare.call_count == 5
        assert repository.tokens[-1]["attempts"] == 5
        assert sum(r.message.startswith("Invalid code.") for r in results) == 5

        with pytest.raises(InvalidArgument):
            await service.verify_reset_token("a@b.test", code, "brand-new-pass")
        await service.signin("a@b.test", "secret123")

    @pytest.mark.asyncio
    async def test_code_cannot_be_used_twice_concurrently(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")

        results = await asyncio.gather(
            service.verify_reset_token("a@b.test", code, "first-new-pass"),
            service.verify_reset_token("a@b.test", code, "second-new-pass"),
            return_exceptions=True,
        )

        assert sum(r == RESET_SUCCESS_MESSAGE for r in results) == 1
        assert sum(isinstance(r, InvalidArgument) for r in results) == 1

    @pytest.mark.asyncio
    async def test_expired_code(self, service, repository, mock_email_sender) -> None:
        await service.signup("a@b.test", "secret123", "A")
        code = await issue_code(service, mock_email_sender, "a@b.test")
        repository.tokens[-1]["expires_at"] = datetime.now(timezone.utc) - timedelta(seconds=1)

        with pytest.raises(InvalidArgument, match="Invalid or expired reset code"):
            await service.verify_reset_token("a@b.test", code, "brand-new-pass")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("otp", ["12345", "1234567", "12a456", "١٢٣٤٥٦"])
    async def test_otp_format(self, service, otp) -> None:
        with pytest.raises(InvalidArgument, match="Invalid OTP format"):
            await service.verify_reset_token("a@b.test", otp, "brand-new-pass")


class TestFounder:
    @pytest.mark.asyncio
    async def test_ensure_admin_only_for_founder(self, service, repository) -> None:
        founder = Identity(subject_id=str(uuid.uuid4()), email="Founder@YaatraBuddy.com")
        stranger = Identity(subject_id=str(uuid.uuid4()), email="someone@b.test")

        assert await service.ensure_admin(founder) is True
        assert await service.ensure_admin(stranger) is False
        assert repository.roles == {(founder.subject_id, "admin")}

    @pytest.mark.asyncio
    async def test_seed_founder_creates_then_resets(self, service, repository) -> None:
        user_id, created = await service.seed_founder("founder@yaatrabuddy.com", "first-pass")
        same_id, created_again = await service.seed_founder("founder@yaatrabuddy.com", "second-pass")

        assert created is True and created_again is False
        assert same_id == user_id
        assert (user_id, "admin") in repository.roles
        await service.signin("founder@yaatrabuddy.com", "second-pass")


class TestCredentialRepository:
    """SQL проверки кода сброса."""

    @pytest.mark.asyncio
    async def test_claim_is_a_single_conditional_update(self, mock_db) -> None:
        mock_db.fetchval.return_value = 3

        attempt = await CredentialRepository(mock_db).claim_reset_attempt(7, 5)

        query, *args = mock_db.fetchval.await_args.args
        assert attempt == 3
        assert "SET attempts = attempts + 1" in query
        assert "attempts < $2" in query and "used = false" in query
        assert "RETURNING attempts" in query
        assert args == [7, 5]

    @pytest.mark.asyncio
    async def test_complete_reset_skips_consumed_token(self, fake_db) -> None:
        fake_db.conn.fetchval.return_value = None

        assert await CredentialRepository(fake_db).complete_reset("a@b.test", "hash", 7) is False
        fake_db.conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_reset_updates_password(self, fake_db) -> None:
        fake_db.conn.fetchval.return_value = 7

        assert await CredentialRepository(fake_db).complete_reset("a@b.test", "hash", 7) is True
        assert fake_db.conn.execute.await_args.args[1:] == ("hash", "a@b.test")
        assert fake_db.transactions == 1
