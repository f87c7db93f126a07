# yaatrabuddy/services/uploads/service.py
"""
Загрузка файлов пользователя.

Файл сохраняется в хранилище, в профиле фиксируется только публичный URL.
"""

from __future__ import annotations

from yaatrabuddy.common.constants import TypeMsg, UploadKind
from yaatrabuddy.common.errors import InvalidArgument
from yaatrabuddy.common.logger import log_info
from yaatrabuddy.infra.database import DatabaseManager
from yaatrabuddy.infra.storage import BlobStorage
from yaatrabuddy.services.data.repository import DataRepository
from yaatrabuddy.shared.models.auth import Identity

PROFILE_COLUMN = {
    UploadKind.AVATARS: "avatar_url",
    UploadKind.UNIVERSITY_IDS: "university_id_url",
}


class UploadService:
    def __init__(
        self,
        db: DatabaseManager,
        storage: BlobStorage,
        repository: DataRepository,
        max_bytes: int | None = None,
    ):
        if max_bytes is None:
            from yaatrabuddy.config import settings
            max_bytes = settings.storage.MAX_UPLOAD_BYTES

        self.db = db
        self.storage = storage
        self.repo = repository
        self.max_bytes = max_bytes

    async def upload(
        self,
        identity: Identity,
        kind: UploadKind,
        filename: str | None,
        content: bytes | None,
    ) -> str:
        """
        Сохраняет файл и обновляет соответствующее поле профиля.

        Для university-ids дополнительно выставляется verification_submitted_at.

        Returns:
            Публичный URL файла

        Raises:
            InvalidArgument: файла нет или он превышает лимит
        """
        if not content:
            raise InvalidArgument("No file uploaded")
        if len(content) > self.max_bytes:
            raise InvalidArgument("File too large")

        url = await self.storage.save(kind, identity.subject_id, filename, content)
        column = PROFILE_COLUMN[kind]
        await self.db.run_as_user(
            identity.subject_id,
            lambda conn: self.repo.set_profile_url(conn, identity.subject_id, column, url),
        )

        await log_info(
            f"Загружен файл {kind.value} пользователя {identity.subject_id}",
            type_msg=TypeMsg.INFO,
        )
        return url
