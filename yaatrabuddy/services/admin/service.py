# yaatrabuddy/services/admin/service.py
"""
Административные операции.

Роль проверяется запросом к user_roles без контекста безопасности,
изменения выполняются после проверки от имени администратора.
"""

from __future__ import annotations

import re
from typing import Any

from yaatrabuddy.common.constants import TypeMsg, UploadKind, UserRole
from yaatrabuddy.common.errors import Forbidden, InvalidArgument, NotFound
from yaatrabuddy.common.logger import log_info
from yaatrabuddy.common.validators import require_uuid
from yaatrabuddy.infra.database import DatabaseManager
from yaatrabuddy.infra.storage import BlobStorage
from yaatrabuddy.shared.models.auth import Identity

# <owner uuid>/<file name>
ID_FILE_PATH = re.compile(r"^([a-f0-9-]{36})/[^/]+$", re.IGNORECASE)


class AdminService:
    def __init__(self, db: DatabaseManager, storage: BlobStorage):
        self.db = db
        self.storage = storage

    async def is_admin(self, subject_id: str) -> bool:
        row = await self.db.fetchrow(
            "SELECT 1 FROM public.user_roles WHERE user_id = $1 AND role = $2",
            subject_id,
            UserRole.ADMIN.value,
        )
        return row is not None

    async def set_25_rides_unlock_spin(self, identity: Identity, user_id: Any) -> str:
        """
        Выставляет пользователю 25 поездок и снова открывает колесо наград.

        Raises:
            Forbidden: вызывающий не администратор
            InvalidArgument: user_id не передан или не UUID
            NotFound: профиль не найден
        """
        if not await self.is_admin(identity.subject_id):
            raise Forbidden("Forbidden: admin only")
        if not user_id or not isinstance(user_id, str):
            raise InvalidArgument("user_id required")
        require_uuid(user_id, "user_id")

        async def work(conn) -> Any:
            return await conn.fetchrow(
                """
                UPDATE public.profiles
                SET total_connections = 25, spin_used = false, rewards_enabled = true
                WHERE user_id = $1
                RETURNING user_id
                """,
                user_id,
            )

        row = await self.db.run_as_user(identity.subject_id, work)
        if row is None:
            raise NotFound("User profile not found")

        await log_info(
            f"Администратор {identity.subject_id} открыл колесо для {user_id}",
            type_msg=TypeMsg.INFO,
        )
        return user_id

    async def signed_id_url(self, identity: Identity, path: str | None) -> str:
        """URL файла студенческого билета. Доступен администратору и владельцу."""
        if not path:
            raise InvalidArgument("File path is required")
        match = ID_FILE_PATH.match(path)
        if match is None:
            raise InvalidArgument("Invalid file path format")

        owner_id = match.group(1)
        if owner_id != identity.subject_id and not await self.is_admin(identity.subject_id):
            raise Forbidden()

        return self.storage.public_url(UploadKind.UNIVERSITY_IDS, path)
