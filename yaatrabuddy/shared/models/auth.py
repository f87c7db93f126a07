# yaatrabuddy/shared/models/auth.py
"""
Модели аутентификации.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """
    Проверенная личность вызывающего.
    Создаётся из bearer-токена, живёт в рамках одного запроса.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str
    email: str


class AuthUser(BaseModel):
    """Публичные данные учётной записи."""

    id: str
    email: str


class AuthResponse(BaseModel):
    """Ответ регистрации и входа."""

    user: AuthUser
    token: str


class SignupRequest(BaseModel):
    """Запрос регистрации. Обязательность полей проверяет сервис."""

    email: str | None = None
    password: str | None = None
    full_name: str | None = None


class SigninRequest(BaseModel):
    """Запрос входа."""

    email: str | None = None
    password: str | None = None


class PasswordResetRequest(BaseModel):
    """Запрос кода сброса пароля."""

    email: str | None = None


class VerifyResetTokenRequest(BaseModel):
    """Подтверждение кода сброса и новый пароль."""

    email: str | None = None
    otp: str | None = None
    newPassword: str | None = None


class EnsureAdminResponse(BaseModel):
    ok: bool = True
    isAdmin: bool
