# yaatrabuddy/common/validators.py
"""
Проверки входных идентификаторов.
"""

from __future__ import annotations

from typing import Any

from yaatrabuddy.common.constants import UUID_PATTERN
from yaatrabuddy.common.errors import InvalidArgument


def is_uuid(value: Any) -> bool:
    """True, если значение - строка строго в формате UUID."""
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def require_uuid(value: Any, field: str) -> str:
    """
    Возвращает значение, если это UUID, иначе выбрасывает InvalidArgument.

    Args:
        value: Проверяемое значение
        field: Имя поля для сообщения об ошибке
    """
    if not is_uuid(value):
        raise InvalidArgument(f"Invalid or missing UUID for parameter {field}")
    return value


def parse_uuid_list(raw: str | None, field: str) -> list[str]:
    """Разбирает список UUID через запятую (пустые элементы пропускаются)."""
    if not raw:
        return []
    return [require_uuid(item.strip(), field) for item in raw.split(",") if item.strip()]
