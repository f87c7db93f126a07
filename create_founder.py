# create_founder.py
"""
Создание или сброс учётной записи основателя (роль admin).

Запуск:
    FOUNDER_SEED_PASSWORD='...' python create_founder.py

Необязательно: FOUNDER_SEED_EMAIL (по умолчанию auth.FOUNDER_EMAIL из конфига).
"""

import asyncio
import os
import sys

# Добавляем корневую директорию проекта в путь
sys.path.append(os.getcwd())

from yaatrabuddy.config import settings
from yaatrabuddy.common.errors import AppError
from yaatrabuddy.infra.database import close_db, get_db, init_db
from yaatrabuddy.infra.email import EmailSender
from yaatrabuddy.services.auth.repository import CredentialRepository
from yaatrabuddy.services.auth.service import CredentialService


async def main() -> int:
    password = os.getenv("FOUNDER_SEED_PASSWORD")
    email = os.getenv("FOUNDER_SEED_EMAIL") or settings.auth.FOUNDER_EMAIL
    if not password or len(password) < settings.auth.MIN_PASSWORD_LENGTH:
        print(f"Задайте FOUNDER_SEED_PASSWORD (минимум {settings.auth.MIN_PASSWORD_LENGTH} символов)")
        return 1

    await init_db()
    email_sender = EmailSender()
    try:
        service = CredentialService(CredentialRepository(get_db()), email_sender)
        user_id, created = await service.seed_founder(email, password)
    except AppError as e:
        print(f"Ошибка: {e.message}")
        return 1
    finally:
        await email_sender.close()
        await close_db()

    if created:
        print(f"Учётная запись основателя создана: {email} | user_id: {user_id}")
    else:
        print(f"Учётная запись основателя обновлена: {email} (пароль сброшен, роль admin выдана)")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
