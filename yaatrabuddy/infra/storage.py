# yaatrabuddy/infra/storage.py
"""
Локальное файловое хранилище загрузок.
Файлы раздаются статикой по /uploads, наружу отдаётся только публичный URL.
"""

from __future__ import annotations

import asyncio
import re
import time
from pathlib import Path

from yaatrabuddy.common.constants import TypeMsg, UploadKind
from yaatrabuddy.common.logger import log_info

_SAFE_EXT = re.compile(r"^\.[A-Za-z0-9]{1,10}$")
DEFAULT_EXT = ".jpg"


def safe_extension(filename: str | None) -> str:
    """Расширение исходного файла, если оно безопасно, иначе .jpg."""
    if not filename:
        return DEFAULT_EXT
    ext = Path(filename).suffix
    return ext.lower() if _SAFE_EXT.match(ext) else DEFAULT_EXT


class BlobStorage:
    """Хранилище вида <root>/<kind>/<user_id>/<ms><ext>."""

    def __init__(self, root: str | Path | None = None, public_base_url: str | None = None) -> None:
        if root is None or public_base_url is None:
            from yaatrabuddy.config import settings
            root = root or settings.storage.UPLOAD_DIR
            public_base_url = public_base_url or settings.storage.PUBLIC_BASE_URL

        self._root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def ensure_dirs(self) -> None:
        """Создаёт корневой каталог и подкаталоги категорий."""
        for kind in UploadKind:
            (self._root / kind.value).mkdir(parents=True, exist_ok=True)

    def public_url(self, kind: UploadKind, relative: str) -> str:
        """Публичный URL для файла внутри категории."""
        return f"{self._public_base_url}/{kind.value}/{relative}"

    async def save(self, kind: UploadKind, user_id: str, filename: str | None, content: bytes) -> str:
        """
        Сохраняет файл пользователя и возвращает его публичный URL.

        Args:
            kind: Категория (avatars, university-ids)
            user_id: UUID владельца (уже проверен вызывающим кодом)
            filename: Исходное имя файла (используется только расширение)
            content: Содержимое файла
        """
        name = f"{int(time.time() * 1000)}{safe_extension(filename)}"
        target_dir = self._root / kind.value / user_id
        target = target_dir / name

        def _write() -> None:
            target_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        await asyncio.to_thread(_write)
        await log_info(
            f"Файл сохранён: {kind.value}/{user_id}/{name} ({len(content)} байт)",
            type_msg=TypeMsg.DEBUG,
        )
        return self.public_url(kind, f"{user_id}/{name}")
