# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import asyncio
import json
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")

from yaatrabuddy.common.errors import InvalidIdentity  # noqa: E402
from yaatrabuddy.common.validators import is_uuid  # noqa: E402
from yaatrabuddy.shared.models.auth import Identity  # noqa: E402

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"
RIDE_ID = "33333333-3333-4333-8333-333333333333"
REQUEST_ID = "44444444-4444-4444-8444-444444444444"
USER_EMAIL = "student@example.com"


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "yaatrabuddy_test",
        "VERSION": "1.0.0-test",
        "DEBUG": False,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "INFO",
        "LOG_FORMAT": "json",
        "DB_HOST": "db.internal",
        "DB_PORT": 5433,
        "DB_NAME": "yaatrabuddy_test",
        "DB_USER": "tester",
        "DB_MAX_POOL_SIZE": 5,
        "DB_ACQUIRE_TIMEOUT": 2.5,
        "JWT_EXPIRE_DAYS": 3,
        "RESET_MAX_ATTEMPTS": 4,
        "PAYMENT_CURRENCY": "INR",
        "PAYMENT_MIN_AMOUNT": 50,
        "PUBLIC_BASE_URL": "https://cdn.example.com/uploads",
        "PORT": 8080,
        "CORS_ORIGINS": ["https://app.example.com"],
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (ФЕЙКИ)
# =============================================================================

class FakeDatabase:
    """
    Подмена DatabaseManager.

    run_as_user проверяет идентификатор как настоящий менеджер и передаёт
    в work одно и то же соединение-мок, чтобы тесты видели SQL и аргументы.
    """

    def __init__(self) -> None:
        self.conn = AsyncMock()
        self.conn.fetch.return_value = []
        self.conn.fetchrow.return_value = None
        self.conn.execute.return_value = "UPDATE 0"
        self.subjects: list[str] = []
        self.transactions = 0

        self.fetch = AsyncMock(return_value=[])
        self.fetchrow = AsyncMock(return_value=None)
        self.fetchval = AsyncMock(return_value=None)
        self.execute = AsyncMock(return_value="OK")
        self.health_check = AsyncMock(return_value=True)

    async def run_as_user(self, subject_id: str, work: Callable[[Any], Awaitable[Any]]) -> Any:
        if not is_uuid(subject_id):
            raise InvalidIdentity()
        self.subjects.append(subject_id)
        return await work(self.conn)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield self.conn


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных для репозиториев."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Мок клиента Razorpay."""
    gateway = MagicMock()
    gateway.is_configured = True
    gateway.key_id = "rzp_test_key"
    gateway.key_secret = "rzp_test_secret"
    gateway.create_order = AsyncMock(return_value={"id": "order_test_1", "amount": 9900, "currency": "INR"})
    gateway.close = AsyncMock()
    return gateway


@pytest.fixture
def mock_email_sender() -> MagicMock:
    """Мок канала email-уведомлений."""
    sender = MagicMock()
    sender.send_password_reset = AsyncMock(return_value=True)
    sender.send = AsyncMock(return_value=True)
    sender.close = AsyncMock()
    return sender


# =============================================================================
# ФИКСТУРЫ ИДЕНТИЧНОСТИ
# =============================================================================

@pytest.fixture
def identity() -> Identity:
    return Identity(subject_id=USER_ID, email=USER_EMAIL)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    from yaatrabuddy.services.auth.tokens import sign_token
    return {"Authorization": f"Bearer {sign_token(USER_ID, USER_EMAIL)}"}


# =============================================================================
# HTTP КЛИЕНТ
# =============================================================================

@pytest.fixture
def api_client(
    fake_db: FakeDatabase,
    mock_gateway: MagicMock,
    mock_email_sender: MagicMock,
    tmp_path: Path,
) -> Generator[Any, None, None]:
    """
    TestClient без lifespan: зависимости подменяются фейками.
    Необработанные ошибки отдаются как 500, а не пробрасываются в тест.
    """
    from fastapi.testclient import TestClient

    from yaatrabuddy.api.app import app
    from yaatrabuddy.api.dependencies import cleanup_dependencies, init_dependencies
    from yaatrabuddy.infra.storage import BlobStorage

    storage = BlobStorage(tmp_path / "uploads", "http://testserver/uploads")
    asyncio.run(
        init_dependencies(
            db=fake_db,
            email_sender=mock_email_sender,
            payment_gateway=mock_gateway,
            storage=storage,
        )
    )
    client = TestClient(app, raise_server_exceptions=False)
    try:
        yield client
    finally:
        asyncio.run(cleanup_dependencies())
