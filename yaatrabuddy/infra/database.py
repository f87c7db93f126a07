# yaatrabuddy/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений, retry для неаутентифицированных запросов и транзакции
с привязкой контекста безопасности для row-level security.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Awaitable, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from yaatrabuddy.common.constants import TypeMsg, UUID_PATTERN
from yaatrabuddy.common.errors import InvalidIdentity
from yaatrabuddy.common.logger import get_logger, log_error, log_info

logger = get_logger("database")

T = TypeVar("T")

# Настройка сессии, которую читают политики RLS
SECURITY_CONTEXT_SETTING = "app.current_user_id"


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Декоратор для автоматического ретрая при ошибках подключения.
    Применяется только к операциям без транзакции.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Задержка между попытками (секунды), растёт линейно
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_error: Exception | None = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except (
                    asyncpg.PostgresConnectionError,
                    asyncpg.InterfaceError,
                    ConnectionRefusedError,
                    OSError,
                ) as e:
                    last_error = e
                    if attempt < max_attempts:
                        await log_info(
                            f"Ошибка подключения к БД (попытка {attempt}/{max_attempts}): {e}",
                            type_msg=TypeMsg.WARNING,
                        )
                        await asyncio.sleep(delay * attempt)
                    else:
                        await log_error(f"Не удалось подключиться к БД после {max_attempts} попыток: {e}")

            raise last_error  # type: ignore

        return wrapper  # type: ignore

    return decorator


async def bind_security_context(conn: Connection, subject_id: str) -> None:
    """
    Привязывает идентификатор пользователя к текущей транзакции.

    Единственное место, где строится SET LOCAL. Значение проверяется
    по строгому шаблону UUID непосредственно перед подстановкой:
    шаблон допускает только hex и дефисы, поэтому кавычка невозможна.
    SET LOCAL живёт до commit/rollback и не переживает возврат соединения в пул.

    Raises:
        InvalidIdentity: если subject_id не UUID
    """
    if not isinstance(subject_id, str) or not UUID_PATTERN.match(subject_id):
        raise InvalidIdentity()
    await conn.execute(f"SET LOCAL {SECURITY_CONTEXT_SETTING} = '{subject_id}'")


class DatabaseManager:
    """
    Менеджер подключений к PostgreSQL.
    Реализует паттерн Singleton для пула соединений.
    """

    _instance: DatabaseManager | None = None
    _pool: Pool | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Инициализация (вызывается только один раз благодаря Singleton)."""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool = None
        self._acquire_timeout: float | None = None

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error(max_attempts=3, delay=1.0)
    async def connect(
        self,
        dsn: str | None = None,
        min_size: int = 2,
        max_size: int = 20,
        command_timeout: int = 30,
        acquire_timeout: float | None = 10.0,
    ) -> None:
        """
        Создаёт пул соединений к PostgreSQL.

        Args:
            dsn: DSN строка подключения (если None, берётся из конфига)
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команд (секунды)
            acquire_timeout: Максимальное ожидание свободного соединения (секунды)
        """
        if self._pool is not None:
            return

        if dsn is None:
            from yaatrabuddy.config import settings
            dsn = settings.database.dsn
            min_size = settings.database.DB_MIN_POOL_SIZE
            max_size = settings.database.DB_MAX_POOL_SIZE
            command_timeout = settings.database.DB_COMMAND_TIMEOUT
            acquire_timeout = settings.database.DB_ACQUIRE_TIMEOUT

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)

        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
        self._acquire_timeout = acquire_timeout

        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Контекстный менеджер для получения соединения из пула.
        Ожидание ограничено acquire_timeout.

        Example:
            async with db.acquire() as conn:
                result = await conn.fetch("SELECT 1")
        """
        async with self.pool.acquire(timeout=self._acquire_timeout) as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """
        Транзакция без контекста безопасности.
        Только для операций до аутентификации (регистрация, сброс пароля)
        и процедур, которые сами проверяют пользователя.

        Example:
            async with db.transaction() as conn:
                await conn.execute("INSERT INTO auth_users ...")
                await conn.execute("INSERT INTO profiles ...")
        """
        async with self.acquire() as connection:
            async with connection.transaction():
                yield connection

    @asynccontextmanager
    async def as_user(self, subject_id: str) -> AsyncGenerator[Connection, None]:
        """
        Транзакция с привязанным контекстом безопасности.

        Идентификатор проверяется до получения соединения. Первая команда
        транзакции - SET LOCAL. Commit при успехе; при ошибке rollback и
        повторный выброс исходного исключения без изменений. Соединение
        возвращается в пул всегда.

        Raises:
            InvalidIdentity: если subject_id не UUID (ничего не выполнено)

        Example:
            async with db.as_user(identity.subject_id) as conn:
                rows = await conn.fetch("SELECT * FROM rides")
        """
        if not isinstance(subject_id, str) or not UUID_PATTERN.match(subject_id):
            raise InvalidIdentity()

        async with self.acquire() as connection:
            tx = connection.transaction()
            await tx.start()
            try:
                await bind_security_context(connection, subject_id)
                yield connection
            except BaseException:
                try:
                    await tx.rollback()
                except Exception as rollback_error:
                    # Исходная ошибка важнее ошибки отката
                    await log_error(f"Ошибка отката транзакции: {rollback_error}")
                raise
            else:
                await tx.commit()

    async def run_as_user(
        self,
        subject_id: str,
        work: Callable[[Connection], Awaitable[T]],
    ) -> T:
        """
        Выполняет work(conn) внутри as_user и возвращает его результат.

        Args:
            subject_id: UUID пользователя для RLS
            work: Асинхронная функция, принимающая соединение
        """
        async with self.as_user(subject_id) as conn:
            return await work(conn)

    @retry_on_connection_error()
    async def execute(self, query: str, *args: Any) -> str:
        """
        Выполняет SQL запрос без возврата данных (без контекста безопасности).

        Returns:
            Статус выполнения
        """
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @retry_on_connection_error()
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        """Выполняет SQL запрос и возвращает все строки (без контекста безопасности)."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @retry_on_connection_error()
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        """Выполняет SQL запрос и возвращает одну строку или None."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @retry_on_connection_error()
    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        """Выполняет SQL запрос и возвращает одно значение."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        """
        Проверяет здоровье подключения к БД.

        Returns:
            True если подключение работает
        """
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


# Глобальный экземпляр
_db_manager: DatabaseManager | None = None


def get_db() -> DatabaseManager:
    """Возвращает глобальный экземпляр DatabaseManager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def init_db() -> None:
    """
    Инициализирует подключение к базе данных.
    Использует настройки из конфигурации.
    """
    from yaatrabuddy.config import settings

    db = get_db()
    await db.connect(
        dsn=settings.database.dsn,
        min_size=settings.database.DB_MIN_POOL_SIZE,
        max_size=settings.database.DB_MAX_POOL_SIZE,
        command_timeout=settings.database.DB_COMMAND_TIMEOUT,
        acquire_timeout=settings.database.DB_ACQUIRE_TIMEOUT,
    )
    await log_info(
        f"PostgreSQL подключён: {settings.database.DB_HOST}:{settings.database.DB_PORT}/{settings.database.DB_NAME}",
        type_msg=TypeMsg.INFO,
    )


async def close_db() -> None:
    """Закрывает подключение к базе данных."""
    db = get_db()
    await db.disconnect()
    await log_info("PostgreSQL отключён", type_msg=TypeMsg.INFO)
