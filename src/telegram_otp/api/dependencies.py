"""FastAPI dependencies — hand out the instances built in the app lifespan."""

from fastapi import Request

from telegram_otp.bot.commands import CommandRouter
from telegram_otp.bot.telegram_client import TelegramBotClient
from telegram_otp.services.otp import OTPService


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service


def get_command_router(request: Request) -> CommandRouter:
    return request.app.state.command_router


def get_bot_client(request: Request) -> TelegramBotClient:
    return request.app.state.bot_client
