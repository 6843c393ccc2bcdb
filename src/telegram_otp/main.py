"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from telegram_otp.api.verify import router as verify_router
from telegram_otp.bot.commands import CommandRouter
from telegram_otp.bot.telegram_client import TelegramBotClient
from telegram_otp.bot.webhook import router as telegram_router
from telegram_otp.config import settings
from telegram_otp.services.otp import OTPService
from telegram_otp.store.client import StoreClient
from telegram_otp.store.code_store import CodeStore
from telegram_otp.store.rate_limiter import RateLimiter

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook.

    The store connection is opened once here and closed on every exit
    path; a failure to connect aborts startup.
    """
    logger.info("Starting %s …", settings.app_name)
    token = settings.require_bot_token()

    store = StoreClient(
        settings.redis_host,
        settings.redis_port,
        command_timeout=settings.redis_command_timeout,
    )
    await store.open()
    try:
        otp_service = OTPService(
            CodeStore(store),
            RateLimiter(store),
            ttl_seconds=settings.otp_ttl_seconds,
            rate_limit_window_ms=settings.rate_limit_window,
        )
        app.state.otp_service = otp_service
        app.state.command_router = CommandRouter(otp_service)
        app.state.bot_client = TelegramBotClient(token)
        logger.info("Store connection established")
        yield
    finally:
        logger.info("Shutting down %s …", settings.app_name)
        await store.close()


app = FastAPI(
    title=settings.app_name,
    description="One-time codes issued over Telegram, redeemed over HTTP",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(verify_router)
app.include_router(telegram_router)


@app.get("/health")
async def health_check():
    """Simple liveness check."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


def run() -> None:
    """Console-script entry point."""
    uvicorn.run(app, host="0.0.0.0", port=settings.server_port)
