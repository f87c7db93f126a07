#!/usr/bin/env python3
"""
Entrypoint для YaatraBuddy API.

Запуск:
    python entrypoints/entrypoint_api.py

Порт по умолчанию: 3001 (server.PORT)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from yaatrabuddy.config import settings


def main() -> None:
    """Запустить API."""
    uvicorn.run(
        "yaatrabuddy.api.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
