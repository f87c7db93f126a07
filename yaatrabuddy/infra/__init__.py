# yaatrabuddy/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL, Razorpay, Resend, файловое хранилище.
"""

from yaatrabuddy.infra.database import DatabaseManager, bind_security_context, get_db
from yaatrabuddy.infra.email import EmailSender
from yaatrabuddy.infra.payment_gateway import RazorpayClient
from yaatrabuddy.infra.storage import BlobStorage

__all__ = [
    "DatabaseManager",
    "bind_security_context",
    "get_db",
    "EmailSender",
    "RazorpayClient",
    "BlobStorage",
]
