# yaatrabuddy/services/payments/routes.py
"""
Роутер /payments.

Endpoints:
- POST /payments/create-order - создать заказ в Razorpay
- POST /payments/verify - проверить подпись и провести расчёт
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from yaatrabuddy.api.dependencies import CurrentIdentity, get_payment_service
from yaatrabuddy.services.payments.service import PaymentService
from yaatrabuddy.shared.models.common import ErrorResponse
from yaatrabuddy.shared.models.payment import (
    CreateOrderRequest,
    PaymentCallback,
    PaymentOrder,
    SettlementResult,
)

router = APIRouter(prefix="/payments", tags=["Payments"])

Service = Annotated[PaymentService, Depends(get_payment_service)]


@router.post(
    "/create-order",
    response_model=PaymentOrder,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Создать заказ",
)
async def create_order(request: CreateOrderRequest, identity: CurrentIdentity, service: Service) -> PaymentOrder:
    return await service.create_order(identity, request.amount, request.purpose, request.ride_request_id)


@router.post(
    "/verify",
    response_model=SettlementResult,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
    summary="Подтвердить оплату",
)
async def verify_payment(callback: PaymentCallback, identity: CurrentIdentity, service: Service) -> SettlementResult:
    """
    Проверяет HMAC-подпись Razorpay и вызывает процедуру расчёта
    в зависимости от назначения платежа.
    """
    return await service.verify_and_settle(identity, callback)
