# yaatrabuddy/shared/models/common.py
"""
Общие модели для всех роутеров.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    error: str


class OkResponse(BaseModel):
    """Простое подтверждение."""

    ok: bool = True


class MessageResponse(BaseModel):
    """Ответ с сообщением для пользователя."""

    success: bool = True
    message: str


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    ok: bool = True
    service: str
    status: str = "healthy"  # healthy, degraded
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    # dependencies: {"postgres": "healthy"}
