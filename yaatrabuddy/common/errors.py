# yaatrabuddy/common/errors.py
"""
Иерархия прикладных ошибок.

Каждая ошибка знает свой HTTP-статус. Сервисы выбрасывают их,
а перевод в ответ `{"error": ...}` делается только на границе API.

    AppError (500)
    ├── Unauthenticated (401)
    ├── Forbidden (403)
    ├── InvalidArgument (400)
    │   └── InvalidIdentity
    ├── NotFound (404)
    ├── VerificationFailed (400)
    ├── SettlementRejected (400)
    ├── UpstreamError (502)
    └── InternalError (500)
"""

from __future__ import annotations


class AppError(Exception):
    """Базовая прикладная ошибка."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AppError):
    """Отсутствует или невалиден bearer-токен, либо неверные учётные данные."""
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):
    """Пользователь аутентифицирован, но действие запрещено."""
    status_code = 403
    default_message = "Forbidden"


class InvalidArgument(AppError):
    """Некорректные входные данные."""
    status_code = 400
    default_message = "Invalid argument"


class InvalidIdentity(InvalidArgument):
    """Идентификатор пользователя не прошёл проверку формата UUID."""
    default_message = "Invalid user id for RLS"


class NotFound(AppError):
    """Неизвестная операция или ресурс."""
    status_code = 404
    default_message = "Not found"


class VerificationFailed(AppError):
    """Подпись платёжного шлюза не совпала."""
    status_code = 400
    default_message = "Payment verification failed"


class SettlementRejected(AppError):
    """Процедура расчёта вернула success=false."""
    status_code = 400
    default_message = "Failed to process payment"


class UpstreamError(AppError):
    """Внешний сервис (платёжный шлюз) ответил ошибкой."""
    status_code = 502
    default_message = "Upstream service error"


class InternalError(AppError):
    """Неожиданная ошибка БД или конфигурации."""
    status_code = 500
    default_message = "Internal server error"
