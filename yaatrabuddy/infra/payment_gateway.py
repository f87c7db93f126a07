# yaatrabuddy/infra/payment_gateway.py
"""
HTTP-клиент платёжного шлюза Razorpay.
Создание заказов через REST API (basic auth key_id:key_secret).
"""

from __future__ import annotations

from typing import Any

import httpx

from yaatrabuddy.common.errors import InternalError, UpstreamError
from yaatrabuddy.common.logger import log_error, log_info
from yaatrabuddy.common.constants import TypeMsg


class RazorpayClient:
    """
    Клиент Razorpay Orders API.

    Реализует:
    - Создание заказа (POST /orders)
    """

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Инициализация клиента.

        Args:
            key_id: Публичный ключ (берётся из конфига если None)
            key_secret: Секретный ключ (берётся из конфига если None)
            base_url: Базовый URL API
            timeout: Таймаут HTTP-запроса (секунды)
            transport: Транспорт httpx (для тестов)
        """
        if key_id is None or key_secret is None:
            from yaatrabuddy.config import settings
            key_id = settings.razorpay.RAZORPAY_KEY_ID
            key_secret = settings.razorpay.RAZORPAY_KEY_SECRET
            base_url = base_url or settings.razorpay.RAZORPAY_API_URL
            timeout = timeout or settings.razorpay.RAZORPAY_TIMEOUT

        self._key_id = key_id
        self._key_secret = key_secret
        self._client = httpx.AsyncClient(
            base_url=base_url or "https://api.razorpay.com/v1",
            timeout=timeout or 15.0,
            auth=(key_id, key_secret),
            transport=transport,
        )

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def key_secret(self) -> str:
        return self._key_secret

    @property
    def is_configured(self) -> bool:
        return bool(self._key_id and self._key_secret)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> dict[str, Any]:
        """
        Создаёт заказ в Razorpay.

        Args:
            amount_minor: Сумма в минимальных единицах (пайсы)
            currency: Код валюты
            receipt: Идентификатор квитанции (до 40 символов)
            notes: Произвольные заметки заказа

        Returns:
            JSON ответа шлюза (содержит id, amount, currency)

        Raises:
            InternalError: шлюз не настроен
            UpstreamError: сетевая ошибка или ответ не 2xx
        """
        if not self.is_configured:
            raise InternalError("Payment not configured")

        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }

        try:
            response = await self._client.post("/orders", json=payload)
        except httpx.HTTPError as e:
            await log_error(f"Razorpay недоступен: {e}", extra={"receipt": receipt})
            raise UpstreamError("Failed to create order") from e

        if response.status_code >= 400:
            await log_error(
                f"Razorpay вернул ошибку {response.status_code}: {response.text}",
                extra={"receipt": receipt},
            )
            raise UpstreamError("Failed to create order")

        data = response.json()
        await log_info(
            f"Заказ Razorpay создан: {data.get('id')}",
            type_msg=TypeMsg.DEBUG,
            extra={"receipt": receipt, "amount": amount_minor},
        )
        return data
