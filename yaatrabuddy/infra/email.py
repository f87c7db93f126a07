# yaatrabuddy/infra/email.py
"""
Канал email-уведомлений (Resend HTTP API).
Без API-ключа письма не отправляются, код пишется в лог (режим разработки).
"""

from __future__ import annotations

import httpx

from yaatrabuddy.common.constants import TypeMsg
from yaatrabuddy.common.logger import log_error, log_info


class EmailSender:
    """Отправка транзакционных писем."""

    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if api_key is None:
            from yaatrabuddy.config import settings
            api_key = settings.email.RESEND_API_KEY
            sender = sender or settings.email.EMAIL_FROM
            api_url = api_url or settings.email.RESEND_API_URL
            timeout = timeout or settings.email.EMAIL_TIMEOUT

        self._api_key = api_key
        self._sender = sender or "YaatraBuddy <noreply@yaatrabuddy.com>"
        self._api_url = api_url or "https://api.resend.com/emails"
        self._client = httpx.AsyncClient(timeout=timeout or 10.0, transport=transport)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    async def send(self, to: str, subject: str, html: str) -> bool:
        """
        Отправляет письмо.

        Returns:
            True если провайдер принял письмо. Ошибки только логируются.
        """
        if not self._api_key:
            await log_info(
                f"RESEND_API_KEY не задан, письмо для {to} не отправлено",
                type_msg=TypeMsg.WARNING,
            )
            return False

        try:
            response = await self._client.post(
                self._api_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={"from": self._sender, "to": [to], "subject": subject, "html": html},
            )
        except httpx.HTTPError as e:
            await log_error(f"Ошибка отправки письма на {to}: {e}")
            return False

        if response.status_code >= 400:
            await log_error(f"Resend вернул {response.status_code}: {response.text}")
            return False

        return True

    async def send_password_reset(self, to: str, code: str, ttl_minutes: int) -> bool:
        """Отправляет одноразовый код сброса пароля."""
        if not self._api_key:
            # Режим разработки: код виден только в логах сервера
            await log_info(f"[DEV] Код сброса пароля для {to}: {code}", type_msg=TypeMsg.WARNING)
            return False

        html = (
            "<p>Your YaatraBuddy password reset code is:</p>"
            f"<h2 style=\"letter-spacing:4px\">{code}</h2>"
            f"<p>This code expires in {ttl_minutes} minutes. "
            "If you did not request a reset, you can ignore this email.</p>"
        )
        return await self.send(to, "Your YaatraBuddy password reset code", html)
