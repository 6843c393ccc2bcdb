"""Telegram Bot API client — sends chat replies over HTTPS."""

from __future__ import annotations

import logging

import httpx

from telegram_otp.config import settings

logger = logging.getLogger(__name__)


class TelegramBotClient:
    """Async HTTP wrapper around the Bot API ``sendMessage`` method."""

    def __init__(self, token: str, base_url: str | None = None) -> None:
        self._token = token
        self._base_url = (base_url or settings.telegram_api_base_url).rstrip("/")

    async def send_message(
        self, chat_id: int, text: str, parse_mode: str | None = None
    ) -> bool:
        """Send *text* to *chat_id*.

        Returns ``True`` if Telegram accepted the message.  Failures are
        logged, not raised.
        """
        if not self._token:
            logger.warning("TELEGRAM_BOT_TOKEN not set — reply logged only: %s", text)
            return False

        url = f"{self._base_url}/bot{self._token}/sendMessage"
        payload: dict = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.exception("sendMessage request error: %s", exc)
            return False

        if resp.status_code == 200:
            logger.info("Reply sent to chat %s", chat_id)
            return True
        logger.error(
            "Failed to send reply to chat %s: %s %s", chat_id, resp.status_code, resp.text
        )
        return False
