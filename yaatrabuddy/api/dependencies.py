# yaatrabuddy/api/dependencies.py
"""
Dependency Injection для API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from yaatrabuddy.common.errors import Unauthenticated
from yaatrabuddy.services.auth.tokens import verify_token
from yaatrabuddy.shared.models.auth import Identity

if TYPE_CHECKING:
    from yaatrabuddy.infra.database import DatabaseManager
    from yaatrabuddy.infra.email import EmailSender
    from yaatrabuddy.infra.payment_gateway import RazorpayClient
    from yaatrabuddy.infra.storage import BlobStorage
    from yaatrabuddy.services.admin.service import AdminService
    from yaatrabuddy.services.auth.service import CredentialService
    from yaatrabuddy.services.data.service import DataService
    from yaatrabuddy.services.payments.service import PaymentService
    from yaatrabuddy.services.rpc.dispatcher import RpcDispatcher
    from yaatrabuddy.services.uploads.service import UploadService


# Синглтоны для инфраструктуры
_db: "DatabaseManager | None" = None
_email_sender: "EmailSender | None" = None
_payment_gateway: "RazorpayClient | None" = None
_storage: "BlobStorage | None" = None

# Синглтоны для сервисов
_credential_service: "CredentialService | None" = None
_rpc_dispatcher: "RpcDispatcher | None" = None
_payment_service: "PaymentService | None" = None
_data_service: "DataService | None" = None
_admin_service: "AdminService | None" = None
_upload_service: "UploadService | None" = None


async def init_dependencies(
    db: "DatabaseManager",
    email_sender: "EmailSender",
    payment_gateway: "RazorpayClient",
    storage: "BlobStorage",
) -> None:
    """Инициализировать зависимости при старте приложения."""
    global _db, _email_sender, _payment_gateway, _storage
    _db = db
    _email_sender = email_sender
    _payment_gateway = payment_gateway
    _storage = storage


def get_db() -> "DatabaseManager":
    """Получить менеджер базы данных."""
    if _db is None:
        raise RuntimeError("База данных не инициализирована. Вызовите init_dependencies()")
    return _db


def get_email_sender() -> "EmailSender":
    """Получить канал email-уведомлений."""
    if _email_sender is None:
        raise RuntimeError("EmailSender не инициализирован. Вызовите init_dependencies()")
    return _email_sender


def get_payment_gateway() -> "RazorpayClient":
    """Получить клиент платёжного шлюза."""
    if _payment_gateway is None:
        raise RuntimeError("Платёжный шлюз не инициализирован. Вызовите init_dependencies()")
    return _payment_gateway


def get_storage() -> "BlobStorage":
    """Получить файловое хранилище."""
    if _storage is None:
        raise RuntimeError("Хранилище не инициализировано. Вызовите init_dependencies()")
    return _storage


def get_credential_service() -> "CredentialService":
    """Получить сервис учётных данных."""
    global _credential_service

    if _credential_service is None:
        from yaatrabuddy.services.auth.repository import CredentialRepository
        from yaatrabuddy.services.auth.service import CredentialService
        _credential_service = CredentialService(
            repository=CredentialRepository(get_db()),
            email_sender=get_email_sender(),
        )

    return _credential_service


def get_rpc_dispatcher() -> "RpcDispatcher":
    """Получить диспетчер удалённых процедур."""
    global _rpc_dispatcher

    if _rpc_dispatcher is None:
        from yaatrabuddy.services.rpc.dispatcher import RpcDispatcher
        _rpc_dispatcher = RpcDispatcher(db=get_db())

    return _rpc_dispatcher


def get_payment_service() -> "PaymentService":
    """Получить сервис платежей."""
    global _payment_service

    if _payment_service is None:
        from yaatrabuddy.services.payments.service import PaymentService
        _payment_service = PaymentService(db=get_db(), gateway=get_payment_gateway())

    return _payment_service


def get_data_service() -> "DataService":
    """Получить сервис ресурсов /data."""
    global _data_service

    if _data_service is None:
        from yaatrabuddy.services.data.repository import DataRepository
        from yaatrabuddy.services.data.service import DataService
        _data_service = DataService(db=get_db(), repository=DataRepository())

    return _data_service


def get_admin_service() -> "AdminService":
    """Получить сервис администрирования."""
    global _admin_service

    if _admin_service is None:
        from yaatrabuddy.services.admin.service import AdminService
        _admin_service = AdminService(db=get_db(), storage=get_storage())

    return _admin_service


def get_upload_service() -> "UploadService":
    """Получить сервис загрузок."""
    global _upload_service

    if _upload_service is None:
        from yaatrabuddy.services.data.repository import DataRepository
        from yaatrabuddy.services.uploads.service import UploadService
        _upload_service = UploadService(db=get_db(), storage=get_storage(), repository=DataRepository())

    return _upload_service


async def cleanup_dependencies() -> None:
    """Очистить ресурсы при остановке приложения."""
    global _db, _email_sender, _payment_gateway, _storage
    global _credential_service, _rpc_dispatcher, _payment_service
    global _data_service, _admin_service, _upload_service
    _credential_service = None
    _rpc_dispatcher = None
    _payment_service = None
    _data_service = None
    _admin_service = None
    _upload_service = None
    _db = None
    _email_sender = None
    _payment_gateway = None
    _storage = None


# === АУТЕНТИФИКАЦИЯ ===

_bearer = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> Identity:
    """Обязательная аутентификация: без валидного bearer-токена запрос отклоняется с 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()
    return verify_token(credentials.credentials)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> Identity | None:
    """Необязательная аутентификация: без токена или с невалидным токеном - None."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    try:
        return verify_token(credentials.credentials)
    except Unauthenticated:
        return None


OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
