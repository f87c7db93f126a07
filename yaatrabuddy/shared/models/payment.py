# yaatrabuddy/shared/models/payment.py
"""
DTO для платежей через Razorpay.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class CreateOrderRequest(BaseModel):
    """Запрос на создание заказа в платёжном шлюзе."""

    model_config = ConfigDict(allow_inf_nan=False)

    amount: int | float | None = None  # в рупиях
    purpose: str | None = None
    ride_request_id: str | None = None


class PaymentOrder(BaseModel):
    """Созданный заказ. Неизменяем после создания."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    amount: int | float
    currency: str = "INR"
    key_id: str


class PaymentCallback(BaseModel):
    """Данные, которые клиент получил от Razorpay Checkout после оплаты."""

    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    razorpay_signature: str = ""
    purpose: str | None = None
    amount: int | float | None = None

    # Метаданные, зависящие от назначения
    ride_id: str | None = None
    ride_request_id: str | None = None
    requester_show_profile_photo: bool | None = None
    requester_show_mobile_number: bool | None = None


class SettlementResult(BaseModel):
    """Результат расчёта по платежу."""

    success: bool = True
    message: str
    expiry_date: Any | None = None
    request_id: Any | None = None
