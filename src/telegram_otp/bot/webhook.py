"""Telegram webhook handler — receives updates and replies to commands."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, Request, Response
from pydantic import ValidationError

from telegram_otp.api.dependencies import get_bot_client, get_command_router
from telegram_otp.bot.commands import CommandRouter
from telegram_otp.bot.telegram_client import TelegramBotClient
from telegram_otp.config import settings
from telegram_otp.models.records import TelegramUser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["telegram"])


@router.post("/telegram/webhook", response_model=None)
async def receive_update(
    request: Request,
    command_router: CommandRouter = Depends(get_command_router),
    bot_client: TelegramBotClient = Depends(get_bot_client),
    secret_token: str | None = Header(None, alias="X-Telegram-Bot-Api-Secret-Token"),
) -> Response | dict:
    """Process one Telegram ``Update``.

    Expected payload structure (simplified)::

        {
          "update_id": 1,
          "message": {
            "from": {"id": 42, "first_name": "Ada"},
            "chat": {"id": 42},
            "text": "/start"
          }
        }
    """
    if settings.telegram_webhook_secret and secret_token != settings.telegram_webhook_secret:
        logger.warning("Webhook call rejected (bad secret token)")
        return Response(content="Forbidden", status_code=403)

    body = await request.json()

    message = body.get("message") if isinstance(body, dict) else None
    if not isinstance(message, dict) or "text" not in message:
        logger.debug("Received non-text update, ignoring")
        return {"status": "ok"}

    text = message["text"]
    chat = message.get("chat")
    if not isinstance(text, str) or not isinstance(chat, dict):
        logger.debug("Received malformed message update, ignoring")
        return {"status": "ok"}

    chat_id = chat.get("id")
    user = _sender(message.get("from"))

    reply = await command_router.route(text, user)
    if chat_id is not None:
        await bot_client.send_message(chat_id, reply.text, reply.parse_mode)

    return {"status": "ok"}


def _sender(data: object) -> TelegramUser | None:
    if not isinstance(data, dict) or "id" not in data:
        return None
    try:
        return TelegramUser.from_telegram(data)
    except ValidationError:
        logger.debug("Unreadable sender in update: %r", data)
        return None
