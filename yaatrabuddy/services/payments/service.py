# yaatrabuddy/services/payments/service.py
"""
Сервис платежей Razorpay.

Создание заказа в шлюзе, проверка подписи callback (HMAC-SHA256) и
расчёт через хранимые процедуры. Идемпотентность обеспечивают процедуры:
каждой передаётся razorpay_payment_id.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import time
from typing import Any, Awaitable, Callable

import asyncpg
from asyncpg import Connection, Record

from yaatrabuddy.common.constants import PAYMENT_SOURCE_RAZORPAY, PaymentPurpose, TypeMsg
from yaatrabuddy.common.errors import (
    AppError,
    InternalError,
    InvalidArgument,
    SettlementRejected,
    VerificationFailed,
)
from yaatrabuddy.common.logger import log_error, log_info
from yaatrabuddy.common.validators import require_uuid
from yaatrabuddy.infra.database import DatabaseManager
from yaatrabuddy.infra.payment_gateway import RazorpayClient
from yaatrabuddy.services.rpc.catalogue import RPC_CATALOGUE
from yaatrabuddy.shared.models.auth import Identity
from yaatrabuddy.shared.models.payment import PaymentCallback, PaymentOrder, SettlementResult

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def build_receipt(purpose: str, subject_id: str, now_ms: int | None = None) -> str:
    """<purpose[:4]>_<user[:8]>_<base36(ms)>, не длиннее 40 символов."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{purpose[:4]}_{subject_id[:8]}_{to_base36(now_ms)}"[:40]


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """HMAC-SHA256(secret, "order_id|payment_id") в hex."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    """Сравнение за постоянное время."""
    expected = compute_signature(secret, order_id, payment_id)
    return hmac.compare_digest(expected.encode("ascii"), (signature or "").encode("utf-8"))


class PaymentService:
    """Мост между callback шлюза и изменением состояния в БД."""

    def __init__(self, db: DatabaseManager, gateway: RazorpayClient, razorpay_settings=None):
        if razorpay_settings is None:
            from yaatrabuddy.config import settings
            razorpay_settings = settings.razorpay

        self.db = db
        self.gateway = gateway
        self.cfg = razorpay_settings

    # === СОЗДАНИЕ ЗАКАЗА ===

    async def create_order(
        self,
        identity: Identity,
        amount: int | float | None,
        purpose: str | None,
        ride_request_id: str | None = None,
    ) -> PaymentOrder:
        """
        Создаёт заказ в шлюзе. Соединение с БД не удерживается.

        Raises:
            InternalError: шлюз не настроен
            InvalidArgument: сумма меньше минимальной, неизвестное назначение
            UpstreamError: шлюз ответил ошибкой
        """
        if not self.gateway.is_configured:
            raise InternalError("Payment not configured")
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float))
            or not math.isfinite(amount)
            or amount < self.cfg.MIN_AMOUNT
        ):
            raise InvalidArgument(f"Minimum amount is ₹{self.cfg.MIN_AMOUNT}")
        if purpose not in {p.value for p in PaymentPurpose}:
            raise InvalidArgument("Invalid payment purpose")
        if ride_request_id:
            require_uuid(ride_request_id, "ride_request_id")

        receipt = build_receipt(purpose, identity.subject_id)
        order = await self.gateway.create_order(
            amount_minor=int(round(amount * 100)),
            currency=self.cfg.CURRENCY,
            receipt=receipt,
            notes={
                "user_id": identity.subject_id,
                "purpose": purpose,
                "ride_request_id": ride_request_id or "",
            },
        )

        await log_info(
            f"Создан заказ {order.get('id')} ({purpose}, {amount} {self.cfg.CURRENCY})",
            type_msg=TypeMsg.INFO,
            extra={"user_id": identity.subject_id},
        )
        return PaymentOrder(
            order_id=order["id"],
            amount=amount,
            currency=self.cfg.CURRENCY,
            key_id=self.gateway.key_id,
        )

    # === ПОДТВЕРЖДЕНИЕ И РАСЧЁТ ===

    async def verify_and_settle(self, identity: Identity, callback: PaymentCallback) -> SettlementResult:
        """
        Проверяет подпись callback и выполняет расчёт по назначению платежа.

        success=false от процедуры даёт SettlementRejected, при этом транзакция
        фиксируется. Ошибка БД откатывает транзакцию и даёт InternalError.

        Raises:
            VerificationFailed: подпись не совпала (процедура не вызывается)
            InvalidArgument: неизвестное назначение или некорректный идентификатор
            SettlementRejected: процедура вернула success=false
            InternalError: шлюз не настроен или ошибка БД
        """
        secret = self.gateway.key_secret
        if not secret:
            raise InternalError("Payment not configured")

        if not verify_signature(
            secret,
            callback.razorpay_order_id,
            callback.razorpay_payment_id,
            callback.razorpay_signature,
        ):
            await log_error(
                f"Неверная подпись платежа {callback.razorpay_payment_id}",
                extra={"user_id": identity.subject_id, "order_id": callback.razorpay_order_id},
            )
            raise VerificationFailed()

        match callback.purpose:
            case PaymentPurpose.SUBSCRIPTION.value:
                return await self._settle_subscription(identity, callback)
            case PaymentPurpose.JOIN_REQUEST.value:
                return await self._settle_join_request(identity, callback)
            case PaymentPurpose.ACCEPT_REQUEST.value:
                return await self._settle_accept_request(identity, callback)
            case _:
                raise InvalidArgument("Invalid purpose")

    async def _call_procedure(
        self,
        purpose: str,
        runner: Callable[[Callable[[Connection], Awaitable[Record | None]]], Awaitable[Record | None]],
        name: str,
        *args: Any,
    ) -> Record | None:
        """Выполняет процедуру расчёта и переводит ошибки БД в InternalError."""
        sql = RPC_CATALOGUE[name].sql()

        async def work(conn: Connection) -> Record | None:
            return await conn.fetchrow(sql, *args)

        try:
            return await runner(work)
        except AppError:
            raise
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            await log_error(f"Ошибка БД при расчёте {purpose}: {e}", exc_info=True)
            raise InternalError("Failed to process payment") from e

    async def _run_unbound(self, work: Callable[[Connection], Awaitable[Record | None]]) -> Record | None:
        async with self.db.transaction() as conn:
            return await work(conn)

    async def _settle_subscription(self, identity: Identity, callback: PaymentCallback) -> SettlementResult:
        # Процедура сама проверяет пользователя, контекст безопасности не привязывается
        row = await self._call_procedure(
            PaymentPurpose.SUBSCRIPTION.value,
            self._run_unbound,
            "activate_premium_subscription",
            identity.subject_id,
            callback.razorpay_payment_id,
            callback.razorpay_order_id,
        )
        if row is None or not row.get("success") or not row.get("expiry_date"):
            message = (row.get("error_message") if row is not None else None) or "Failed to activate subscription"
            raise SettlementRejected(message)

        await log_info(f"Подписка активирована: {identity.subject_id}", type_msg=TypeMsg.INFO)
        return SettlementResult(message="Premium subscription activated!", expiry_date=row.get("expiry_date"))

    async def _settle_join_request(self, identity: Identity, callback: PaymentCallback) -> SettlementResult:
        ride_id = require_uuid(callback.ride_id, "ride_id")
        show_photo = callback.requester_show_profile_photo
        show_mobile = callback.requester_show_mobile_number

        row = await self._call_procedure(
            PaymentPurpose.JOIN_REQUEST.value,
            lambda work: self.db.run_as_user(identity.subject_id, work),
            "create_and_pay_join_request",
            identity.subject_id,
            ride_id,
            PAYMENT_SOURCE_RAZORPAY,
            True if show_photo is None else show_photo,
            False if show_mobile is None else show_mobile,
            callback.razorpay_payment_id,
        )
        self._ensure_success(row)

        request_id = row.get("request_id")
        return SettlementResult(
            message="Join request payment successful",
            request_id=str(request_id) if request_id is not None else None,
        )

    async def _settle_accept_request(self, identity: Identity, callback: PaymentCallback) -> SettlementResult:
        ride_request_id = require_uuid(callback.ride_request_id, "ride_request_id")

        row = await self._call_procedure(
            PaymentPurpose.ACCEPT_REQUEST.value,
            lambda work: self.db.run_as_user(identity.subject_id, work),
            "pay_accept_request",
            identity.subject_id,
            ride_request_id,
            PAYMENT_SOURCE_RAZORPAY,
            callback.razorpay_payment_id,
        )
        self._ensure_success(row)
        return SettlementResult(message="Request accepted successfully! Chat is now open.")

    @staticmethod
    def _ensure_success(row: Record | None) -> None:
        if row is None or not row.get("success"):
            message = (row.get("error_message") if row is not None else None) or "Failed to process payment"
            raise SettlementRejected(message)
