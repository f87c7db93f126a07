# yaatrabuddy/services/auth/passwords.py
"""
Хэширование паролей (bcrypt) и одноразовых кодов сброса (SHA-256).
bcrypt выполняется в отдельном потоке, чтобы не блокировать event loop.
"""

from __future__ import annotations

import asyncio
import hashlib
import secrets

import bcrypt

# Хэш для сравнения, когда пользователь не найден: время ответа не зависит от наличия email
_DUMMY_HASH = bcrypt.hashpw(b"yaatrabuddy-dummy-password", bcrypt.gensalt(rounds=10))


def _encode(password: str) -> bytes:
    # bcrypt учитывает только первые 72 байта
    return password.encode("utf-8")[:72]


async def hash_password(password: str, rounds: int = 10) -> str:
    """Возвращает bcrypt-хэш пароля."""
    hashed = await asyncio.to_thread(bcrypt.hashpw, _encode(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Сравнивает пароль с хэшем.
    При отсутствии хэша сравнивает с фиктивным и возвращает False.
    """
    if not password_hash:
        await asyncio.to_thread(bcrypt.checkpw, _encode(password), _DUMMY_HASH)
        return False
    try:
        return await asyncio.to_thread(bcrypt.checkpw, _encode(password), password_hash.encode("utf-8"))
    except ValueError:
        # Повреждённый хэш в БД
        return False


def generate_otp() -> str:
    """Шестизначный код из криптографического генератора."""
    return f"{secrets.randbelow(900000) + 100000}"


def hash_otp(otp: str) -> str:
    """SHA-256 (hex) одноразового кода. В БД хранится только хэш."""
    return hashlib.sha256(otp.encode("utf-8")).hexdigest()
