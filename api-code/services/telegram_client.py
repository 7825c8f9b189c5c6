from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from services.errors import ServiceAPIError, is_success


logger = logging.getLogger("deploy-bot.telegram")


class TelegramAPIError(ServiceAPIError):
    service = "Telegram Bot API"


class TelegramClient:
    """Sends chat messages and answers callback queries through the Bot API."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        *,
        api_base: str = "https://api.telegram.org",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.chat_id = chat_id
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._client = httpx.AsyncClient(transport=transport, timeout=None)

    async def close(self) -> None:
        await self._client.aclose()

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    async def send_message(
        self,
        text: str,
        action_label: Optional[str] = None,
        action_payload: Optional[str] = None,
    ) -> None:
        """Post ``text`` to the configured chat.

        When both ``action_label`` and ``action_payload`` are given the
        message carries a single inline button; Telegram echoes the payload
        back untouched in the callback query when it is pressed.
        """
        payload: Dict[str, Any] = {"chat_id": self.chat_id, "text": text}
        if action_label and action_payload:
            payload["reply_markup"] = {
                "inline_keyboard": [
                    [{"text": action_label, "callback_data": action_payload}]
                ]
            }

        response = await self._client.post(self._method_url("sendMessage"), json=payload)
        if not is_success(response.status_code):
            raise TelegramAPIError(response.status_code, response.text, operation="sendMessage")
        logger.debug("Sent Telegram message to chat=%s", self.chat_id)

    async def answer_callback(self, callback_id: str) -> None:
        response = await self._client.get(
            self._method_url("answerCallbackQuery"),
            params={"callback_query_id": callback_id},
        )
        if not is_success(response.status_code):
            raise TelegramAPIError(
                response.status_code, response.text, operation="answerCallbackQuery"
            )
