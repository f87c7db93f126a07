# yaatrabuddy/services/auth/tokens.py
"""
Выпуск и проверка bearer-токенов (JWT HS256).
Клеймы: sub (UUID пользователя), email, exp.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from yaatrabuddy.common.errors import Unauthenticated
from yaatrabuddy.shared.models.auth import Identity


def _auth_settings():
    from yaatrabuddy.config import settings
    return settings.auth


def sign_token(
    subject_id: str,
    email: str,
    secret: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """
    Подписывает токен для пользователя.

    Args:
        subject_id: UUID пользователя
        email: Email пользователя
        secret: Секрет подписи (по умолчанию из конфига)
        expires_in: Время жизни (по умолчанию JWT_EXPIRE_DAYS)
    """
    cfg = _auth_settings()
    if expires_in is None:
        expires_in = timedelta(days=cfg.JWT_EXPIRE_DAYS)

    claims = {
        "sub": subject_id,
        "email": email,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(claims, secret or cfg.JWT_SECRET, algorithm=cfg.JWT_ALGORITHM)


def verify_token(token: str, secret: str | None = None) -> Identity:
    """
    Проверяет подпись и срок действия токена.

    Returns:
        Identity вызывающего

    Raises:
        Unauthenticated: подпись неверна, токен истёк или нет sub
    """
    cfg = _auth_settings()
    try:
        claims = jwt.decode(token, secret or cfg.JWT_SECRET, algorithms=[cfg.JWT_ALGORITHM])
    except JWTError as e:
        raise Unauthenticated() from e

    subject_id = claims.get("sub")
    if not subject_id or not isinstance(subject_id, str):
        raise Unauthenticated()

    return Identity(subject_id=subject_id, email=claims.get("email") or "")
