"""Bot commands — ``/start`` issues a code, ``/help`` explains usage."""

from __future__ import annotations

import logging

from telegram_otp.bot.base import BaseCommand, BotReply
from telegram_otp.models.records import TelegramUser
from telegram_otp.services.otp import OTPService

logger = logging.getLogger(__name__)

MARKDOWN = "Markdown"

UNIDENTIFIED_REPLY = "❌ Unable to identify user. Please try again."
UNKNOWN_COMMAND_REPLY = (
    "❓ Unknown command. Use /start to generate an OTP code "
    "or /help for more information."
)
ERROR_REPLY = "❌ An error occurred. Please try again later."


class StartCommand(BaseCommand):
    """Issue a fresh one-time code to the sender."""

    def __init__(self, otp_service: OTPService) -> None:
        self._otp = otp_service

    @property
    def name(self) -> str:
        return "start"

    async def handle(self, user: TelegramUser) -> BotReply:
        result = await self._otp.issue(user)

        if result.rate_limited:
            return BotReply(
                f"⏰ Please wait {describe_window(result.window_ms)} "
                "before requesting another OTP code."
            )

        if not result.ok:
            return BotReply("❌ Failed to generate OTP. Please try again.")

        minutes = max(1, result.ttl_seconds // 60)
        return BotReply(
            text=(
                f"🔐 Your OTP code is: *{result.code}*\n\n"
                f"⏰ This code will expire in {minutes} minutes.\n"
                "🔒 Use this code to authenticate on the web application.\n\n"
                "⚠️ Do not share this code with anyone."
            ),
            parse_mode=MARKDOWN,
        )


class HelpCommand(BaseCommand):
    @property
    def name(self) -> str:
        return "help"

    async def handle(self, user: TelegramUser) -> BotReply:
        return BotReply(
            text=(
                "🤖 *Telegram OTP Bot*\n\n"
                "Available commands:\n"
                "• /start - Generate a new OTP code\n"
                "• /help - Show this help message\n\n"
                "This bot generates secure OTP codes for web authentication."
            ),
            parse_mode=MARKDOWN,
        )


class CommandRouter:
    """Dispatches an incoming message to the matching command.

    Routing logic
    -------------
    * ``/start`` → ``StartCommand``
    * ``/help``  → ``HelpCommand``
    * anything else → unknown-command hint
    """

    def __init__(self, otp_service: OTPService) -> None:
        commands: list[BaseCommand] = [StartCommand(otp_service), HelpCommand()]
        self._commands = {command.name: command for command in commands}

    async def route(self, text: str, user: TelegramUser | None) -> BotReply:
        """Route *text* from *user* and return the reply to send."""
        if user is None:
            return BotReply(UNIDENTIFIED_REPLY)

        command = self._commands.get(_command_name(text))
        if command is None:
            return BotReply(UNKNOWN_COMMAND_REPLY)

        logger.info("Routing /%s from user %s", command.name, user.id)
        try:
            return await command.handle(user)
        except Exception:
            logger.exception("Error in /%s handler", command.name)
            return BotReply(ERROR_REPLY)


def _command_name(text: str) -> str:
    """``"/start@my_bot payload"`` → ``"start"``; non-commands → ``""``."""
    parts = text.strip().split(maxsplit=1)
    if not parts or not parts[0].startswith("/"):
        return ""
    return parts[0][1:].split("@", 1)[0].lower()


def describe_window(window_ms: int) -> str:
    """``60000`` → ``"1 minute"``, ``90000`` → ``"90 seconds"``."""
    if window_ms >= 60_000 and window_ms % 60_000 == 0:
        minutes = window_ms // 60_000
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    seconds = max(1, -(-window_ms // 1000))
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"
