# yaatrabuddy/services/auth/service.py
"""
Сервис учётных данных: регистрация, вход, сброс пароля по одноразовому коду.
"""

from __future__ import annotations

import hmac
import uuid
from datetime import datetime, timedelta, timezone

import asyncpg

from yaatrabuddy.common.constants import GENERIC_RESET_MESSAGE, TypeMsg, UserRole
from yaatrabuddy.common.errors import InvalidArgument, Unauthenticated
from yaatrabuddy.common.logger import log_error, log_info, log_warning
from yaatrabuddy.infra.email import EmailSender
from yaatrabuddy.services.auth.passwords import (
    generate_otp,
    hash_otp,
    hash_password,
    verify_password,
)
from yaatrabuddy.services.auth.repository import CredentialRepository
from yaatrabuddy.services.auth.tokens import sign_token
from yaatrabuddy.shared.models.auth import AuthResponse, AuthUser, Identity

INVALID_CREDENTIALS = "Invalid email or password"
EXPIRED_RESET_CODE = "Invalid or expired reset code. Please request a new one."
RESET_SUCCESS_MESSAGE = (
    "Password has been reset successfully. You can now sign in with your new password."
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialService:
    """
    Учётные записи по email и паролю.

    Параметры безопасности (стоимость bcrypt, длина пароля, TTL и лимит
    попыток кода сброса) берутся из секции auth конфигурации.
    """

    def __init__(self, repository: CredentialRepository, email_sender: EmailSender, auth_settings=None):
        if auth_settings is None:
            from yaatrabuddy.config import settings
            auth_settings = settings.auth

        self.repository = repository
        self.email_sender = email_sender
        self.cfg = auth_settings

    def _check_password_length(self, password: str) -> None:
        if len(password) < self.cfg.MIN_PASSWORD_LENGTH:
            raise InvalidArgument(
                f"Password must be at least {self.cfg.MIN_PASSWORD_LENGTH} characters"
            )

    async def signup(self, email: str | None, password: str | None, full_name: str | None) -> AuthResponse:
        """
        Регистрирует пользователя и возвращает токен.

        Raises:
            InvalidArgument: не хватает полей, короткий пароль или email занят
        """
        if not email or not password or not full_name or not full_name.strip():
            raise InvalidArgument("Email, password, and full_name are required")
        self._check_password_length(password)

        email_norm = normalize_email(email)
        if await self.repository.get_user_by_email(email_norm) is not None:
            raise InvalidArgument("This email is already registered")

        password_hash = await hash_password(password, self.cfg.BCRYPT_ROUNDS)
        user_id = str(uuid.uuid4())
        try:
            await self.repository.create_user(user_id, email_norm, password_hash, full_name.strip())
        except asyncpg.UniqueViolationError as e:
            # Параллельная регистрация того же email
            raise InvalidArgument("This email is already registered") from e

        await log_info(f"Зарегистрирован пользователь {user_id}", type_msg=TypeMsg.INFO)
        return AuthResponse(
            user=AuthUser(id=user_id, email=email_norm),
            token=sign_token(user_id, email_norm),
        )

    async def signin(self, email: str | None, password: str | None) -> AuthResponse:
        """
        Вход по email и паролю.
        Неизвестный email и неверный пароль неотличимы для клиента.
        """
        if not email or not password:
            raise InvalidArgument("Email and password are required")

        email_norm = normalize_email(email)
        row = await self.repository.get_user_by_email(email_norm)
        password_hash = row["password_hash"] if row is not None else None

        if not await verify_password(password, password_hash) or row is None:
            raise Unauthenticated(INVALID_CREDENTIALS)

        user_id = str(row["id"])
        return AuthResponse(
            user=AuthUser(id=user_id, email=row["email"]),
            token=sign_token(user_id, row["email"]),
        )

    async def request_password_reset(self, email: str | None) -> str:
        """
        Выпускает код сброса, если учётная запись существует.
        Ответ всегда одинаковый; ошибка доставки письма не раскрывается.
        """
        if not email or not isinstance(email, str):
            raise InvalidArgument("Email is required")

        email_norm = normalize_email(email)
        if await self.repository.get_user_by_email(email_norm) is None:
            return GENERIC_RESET_MESSAGE

        otp = generate_otp()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.cfg.RESET_TOKEN_TTL_MINUTES)
        await self.repository.replace_reset_token(email_norm, hash_otp(otp), expires_at)

        try:
            await self.email_sender.send_password_reset(email_norm, otp, self.cfg.RESET_TOKEN_TTL_MINUTES)
        except Exception as e:
            await log_error(f"Не удалось отправить код сброса на {email_norm}: {e}", exc_info=True)

        return GENERIC_RESET_MESSAGE

    async def verify_reset_token(self, email: str | None, otp: str | None, new_password: str | None) -> str:
        """
        Проверяет код сброса и устанавливает новый пароль.

        Попытка занимается в базе атомарно до сравнения хеша.
        Когда попытки исчерпаны, токен гасится без сравнения.
        """
        if not email or not otp or not new_password:
            raise InvalidArgument("Email, OTP, and new password are required")
        self._check_password_length(new_password)
        if len(otp) != 6 or not otp.isascii() or not otp.isdigit():
            raise InvalidArgument("Invalid OTP format")

        email_norm = normalize_email(email)
        token = await self.repository.get_active_reset_token(email_norm)
        if token is None:
            raise InvalidArgument(EXPIRED_RESET_CODE)

        max_attempts = self.cfg.RESET_MAX_ATTEMPTS
        attempt = await self.repository.claim_reset_attempt(token["id"], max_attempts)
        if attempt is None:
            await self.repository.mark_token_used(token["id"])
            await log_warning(f"Код сброса для {email_norm} заблокирован после {max_attempts} попыток")
            raise InvalidArgument("Too many failed attempts. Please request a new reset code.")

        if not hmac.compare_digest(token["token_hash"], hash_otp(otp)):
            remaining = max(max_attempts - attempt, 0)
            suffix = "" if remaining == 1 else "s"
            raise InvalidArgument(f"Invalid code. {remaining} attempt{suffix} remaining.")

        password_hash = await hash_password(new_password, self.cfg.BCRYPT_ROUNDS)
        if not await self.repository.complete_reset(email_norm, password_hash, token["id"]):
            raise InvalidArgument(EXPIRED_RESET_CODE)

        try:
            await self.repository.cleanup_expired_reset_tokens()
        except Exception as e:
            await log_warning(f"Очистка истёкших токенов сброса не удалась: {e}")

        await log_info(f"Пароль сброшен для {email_norm}", type_msg=TypeMsg.INFO)
        return RESET_SUCCESS_MESSAGE

    async def ensure_admin(self, identity: Identity) -> bool:
        """Выдаёт роль admin владельцу email основателя. Возвращает признак админа."""
        if normalize_email(identity.email) != normalize_email(self.cfg.FOUNDER_EMAIL):
            return False
        await self.repository.grant_role(identity.subject_id, UserRole.ADMIN)
        return True

    async def seed_founder(self, email: str, password: str) -> tuple[str, bool]:
        """
        Создаёт учётную запись основателя или сбрасывает её пароль.

        Returns:
            (user_id, created)
        """
        self._check_password_length(password)
        email_norm = normalize_email(email)
        password_hash = await hash_password(password, self.cfg.BCRYPT_ROUNDS)

        existing = await self.repository.get_user_by_email(email_norm)
        if existing is not None:
            user_id = str(existing["id"])
            await self.repository.update_password(user_id, password_hash)
            await self.repository.grant_role(user_id, UserRole.ADMIN)
            return user_id, False

        user_id = str(uuid.uuid4())
        await self.repository.create_user(user_id, email_norm, password_hash, "Founder", role=UserRole.ADMIN)
        return user_id, True
