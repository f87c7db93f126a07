# yaatrabuddy/common/constants.py
"""
Общие константы и перечисления.
"""

import re
from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей (таблица user_roles)."""
    USER = "user"
    ADMIN = "admin"


class PaymentPurpose(str, Enum):
    """Назначение платежа через платёжный шлюз."""
    JOIN_REQUEST = "join_request"
    ACCEPT_REQUEST = "accept_request"
    SUBSCRIPTION = "subscription"


class RequestStatus(str, Enum):
    """Статусы заявки на поездку."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class TransportMode(str, Enum):
    """Вид транспорта поездки."""
    CAR = "car"
    BIKE = "bike"
    AUTO = "auto"


class UploadKind(str, Enum):
    """Категории загружаемых файлов (подкаталоги хранилища)."""
    AVATARS = "avatars"
    UNIVERSITY_IDS = "university-ids"


# Строгий формат UUID. Только hex и дефисы, кавычки невозможны.
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Источник оплаты, передаваемый в процедуры расчёта
PAYMENT_SOURCE_RAZORPAY = "razorpay"

GENERIC_RESET_MESSAGE = (
    "If an account exists with this email, you will receive a password reset code."
)
