# yaatrabuddy/services/auth/repository.py
"""
Хранилище учётных записей и токенов сброса пароля.
Работает до аутентификации, поэтому без контекста безопасности.
"""

from __future__ import annotations

from datetime import datetime

from asyncpg import Record

from yaatrabuddy.common.constants import UserRole
from yaatrabuddy.infra.database import DatabaseManager


class CredentialRepository:
    def __init__(self, db: DatabaseManager):
        self.db = db

    async def get_user_by_email(self, email: str) -> Record | None:
        """Учётная запись по email (email уже нормализован)."""
        return await self.db.fetchrow(
            "SELECT id, email, password_hash FROM public.auth_users WHERE email = $1",
            email,
        )

    async def create_user(
        self,
        user_id: str,
        email: str,
        password_hash: str,
        full_name: str,
        role: UserRole | None = None,
    ) -> None:
        """Создаёт auth_users и profiles (и роль, если задана) одной транзакцией."""
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO public.auth_users (id, email, password_hash, email_confirmed_at)
                VALUES ($1, $2, $3, now())
                """,
                user_id, email, password_hash,
            )
            await conn.execute(
                "INSERT INTO public.profiles (user_id, full_name, email) VALUES ($1, $2, $3)",
                user_id, full_name, email,
            )
            if role is not None:
                await conn.execute(
                    "INSERT INTO public.user_roles (user_id, role) VALUES ($1, $2)",
                    user_id, role.value,
                )

    async def update_password(self, user_id: str, password_hash: str) -> None:
        await self.db.execute(
            "UPDATE public.auth_users SET password_hash = $1 WHERE id = $2",
            password_hash, user_id,
        )

    async def grant_role(self, user_id: str, role: UserRole) -> None:
        """Выдаёт роль (повторная выдача игнорируется)."""
        await self.db.execute(
            """
            INSERT INTO public.user_roles (user_id, role) VALUES ($1, $2)
            ON CONFLICT (user_id, role) DO NOTHING
            """,
            user_id, role.value,
        )

    # === ТОКЕНЫ СБРОСА ===

    async def replace_reset_token(self, email: str, token_hash: str, expires_at: datetime) -> None:
        """Гасит прежние неиспользованные токены и сохраняет новый в одной транзакции."""
        async with self.db.transaction() as conn:
            await conn.execute(
                "UPDATE public.password_reset_tokens SET used = true WHERE email = $1 AND used = false",
                email,
            )
            await conn.execute(
                """
                INSERT INTO public.password_reset_tokens (email, token_hash, expires_at)
                VALUES ($1, $2, $3)
                """,
                email, token_hash, expires_at,
            )

    async def get_active_reset_token(self, email: str) -> Record | None:
        """Самый свежий неиспользованный и не истёкший токен."""
        return await self.db.fetchrow(
            """
            SELECT id, token_hash, attempts FROM public.password_reset_tokens
            WHERE email = $1 AND used = false AND expires_at > now()
            ORDER BY created_at DESC LIMIT 1
            """,
            email,
        )

    async def mark_token_used(self, token_id) -> None:
        await self.db.execute(
            "UPDATE public.password_reset_tokens SET used = true WHERE id = $1",
            token_id,
        )

    async def claim_reset_attempt(self, token_id, max_attempts: int) -> int | None:
        """
        Атомарно занимает одну попытку проверки кода.

        Returns:
            Номер занятой попытки или None, если лимит исчерпан
            либо токен уже погашен или истёк.
        """
        return await self.db.fetchval(
            """
            UPDATE public.password_reset_tokens SET attempts = attempts + 1
            WHERE id = $1 AND used = false AND expires_at > now() AND attempts < $2
            RETURNING attempts
            """,
            token_id, max_attempts,
        )

    async def complete_reset(self, email: str, password_hash: str, token_id) -> bool:
        """
        Гасит токен и меняет пароль одной транзакцией.
        False, если токен уже погашен параллельным запросом.
        """
        async with self.db.transaction() as conn:
            consumed = await conn.fetchval(
                """
                UPDATE public.password_reset_tokens SET used = true
                WHERE id = $1 AND used = false
                RETURNING id
                """,
                token_id,
            )
            if consumed is None:
                return False
            await conn.execute(
                "UPDATE public.auth_users SET password_hash = $1 WHERE email = $2",
                password_hash, email,
            )
            return True

    async def cleanup_expired_reset_tokens(self) -> None:
        await self.db.execute("SELECT public.cleanup_expired_reset_tokens()")
