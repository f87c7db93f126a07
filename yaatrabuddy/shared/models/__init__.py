# yaatrabuddy/shared/models/__init__.py
"""
Pydantic-модели запросов и ответов API.
"""

from yaatrabuddy.shared.models.auth import (
    Identity,
    AuthUser,
    AuthResponse,
)
from yaatrabuddy.shared.models.payment import (
    PaymentOrder,
    PaymentCallback,
    SettlementResult,
)
from yaatrabuddy.shared.models.common import (
    ErrorResponse,
    HealthStatus,
    MessageResponse,
    OkResponse,
)

__all__ = [
    # Auth
    "Identity",
    "AuthUser",
    "AuthResponse",
    # Payment
    "PaymentOrder",
    "PaymentCallback",
    "SettlementResult",
    # Common
    "ErrorResponse",
    "HealthStatus",
    "MessageResponse",
    "OkResponse",
]
