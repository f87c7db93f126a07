# yaatrabuddy/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины - config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (можно переопределить через CONFIG_PATH)."""
    override = os.getenv("CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "yaatrabuddy"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DATABASE_URL: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "yaatrabuddy"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 30
    DB_ACQUIRE_TIMEOUT: float = 10.0
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """DSN для подключения. DATABASE_URL имеет приоритет над отдельными полями."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class AuthSettings(BaseModel):
    """Настройки аутентификации и сброса пароля."""
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10
    MIN_PASSWORD_LENGTH: int = 6
    RESET_TOKEN_TTL_MINUTES: int = 10
    RESET_MAX_ATTEMPTS: int = 5
    FOUNDER_EMAIL: str = "founder@yaatrabuddy.com"

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Секрет подписи токенов из переменных окружения."""
        env_secret = os.getenv("JWT_SECRET", "")
        if env_secret:
            return env_secret
        return v


class RazorpaySettings(BaseModel):
    """Настройки платёжного шлюза Razorpay."""
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_TIMEOUT: float = 15.0
    CURRENCY: str = "INR"
    MIN_AMOUNT: int = 21

    @property
    def is_configured(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)


class EmailSettings(BaseModel):
    """Настройки канала уведомлений (Resend)."""
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "YaatraBuddy <noreply@yaatrabuddy.com>"
    EMAIL_TIMEOUT: float = 10.0


class StorageSettings(BaseModel):
    """Настройки файлового хранилища."""
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: str = "http://localhost:3001/uploads"
    MAX_UPLOAD_BYTES: int = 5242880


class ServerSettings(BaseModel):
    """Настройки HTTP-сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Ключи, начинающиеся с _comment_, служат только для документации
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "yaatrabuddy"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            database=DatabaseSettings(
                DATABASE_URL=os.getenv("DATABASE_URL", data.get("DATABASE_URL", "")),
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "yaatrabuddy")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 20),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_ACQUIRE_TIMEOUT=data.get("DB_ACQUIRE_TIMEOUT", 10.0),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", data.get("JWT_SECRET", "change-me-in-production")),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                JWT_EXPIRE_DAYS=data.get("JWT_EXPIRE_DAYS", 7),
                BCRYPT_ROUNDS=data.get("BCRYPT_ROUNDS", 10),
                MIN_PASSWORD_LENGTH=data.get("MIN_PASSWORD_LENGTH", 6),
                RESET_TOKEN_TTL_MINUTES=data.get("RESET_TOKEN_TTL_MINUTES", 10),
                RESET_MAX_ATTEMPTS=data.get("RESET_MAX_ATTEMPTS", 5),
                FOUNDER_EMAIL=data.get("FOUNDER_EMAIL", "founder@yaatrabuddy.com"),
            ),
            razorpay=RazorpaySettings(
                RAZORPAY_KEY_ID=os.getenv("RAZORPAY_KEY_ID", data.get("RAZORPAY_KEY_ID", "")),
                RAZORPAY_KEY_SECRET=os.getenv("RAZORPAY_KEY_SECRET", data.get("RAZORPAY_KEY_SECRET", "")),
                RAZORPAY_API_URL=data.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1"),
                RAZORPAY_TIMEOUT=data.get("RAZORPAY_TIMEOUT", 15.0),
                CURRENCY=data.get("PAYMENT_CURRENCY", "INR"),
                MIN_AMOUNT=data.get("PAYMENT_MIN_AMOUNT", 21),
            ),
            email=EmailSettings(
                RESEND_API_KEY=os.getenv("RESEND_API_KEY", data.get("RESEND_API_KEY", "")),
                RESEND_API_URL=data.get("RESEND_API_URL", "https://api.resend.com/emails"),
                EMAIL_FROM=data.get("EMAIL_FROM", "YaatraBuddy <noreply@yaatrabuddy.com>"),
                EMAIL_TIMEOUT=data.get("EMAIL_TIMEOUT", 10.0),
            ),
            storage=StorageSettings(
                UPLOAD_DIR=os.getenv("UPLOAD_DIR", data.get("UPLOAD_DIR", "uploads")),
                PUBLIC_BASE_URL=os.getenv(
                    "PUBLIC_BASE_URL",
                    data.get("PUBLIC_BASE_URL", "http://localhost:3001/uploads"),
                ),
                MAX_UPLOAD_BYTES=data.get("MAX_UPLOAD_BYTES", 5242880),
            ),
            server=ServerSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=int(os.getenv("PORT", data.get("PORT", 3001))),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
