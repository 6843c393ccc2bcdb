"""Tests for the HTTP surface — verify endpoint, health check and webhook."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from telegram_otp.api.dependencies import get_bot_client, get_command_router, get_otp_service
from telegram_otp.bot.base import BotReply
from telegram_otp.bot.commands import CommandRouter
from telegram_otp.bot.telegram_client import TelegramBotClient
from telegram_otp.config import settings
from telegram_otp.main import app
from telegram_otp.models.records import TelegramUser
from telegram_otp.services.otp import FailureReason, OTPService, VerifyResult

ADA = TelegramUser(id=42, username="ada", first_name="Ada", full_name="Ada")


@pytest.fixture
def otp_service():
    return AsyncMock(spec=OTPService)


@pytest.fixture
def command_router():
    router = AsyncMock(spec=CommandRouter)
    router.route.return_value = BotReply("hi", parse_mode="Markdown")
    return router


@pytest.fixture
def bot_client():
    return AsyncMock(spec=TelegramBotClient)


@pytest_asyncio.fixture
async def http(otp_service, command_router, bot_client):
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_command_router] = lambda: command_router
    app.dependency_overrides[get_bot_client] = lambda: bot_client
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── /api/verify-otp ──────────────────────────────────────

@pytest.mark.asyncio
async def test_verify_success(http, otp_service):
    otp_service.verify.return_value = VerifyResult(ok=True, user=ADA)

    resp = await http.post("/api/verify-otp", json={"code": "482913"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["id"] == 42
    otp_service.verify.assert_awaited_once_with("482913")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reason, status",
    [
        (FailureReason.NOT_FOUND, 400),
        (FailureReason.EXPIRED, 400),
        (FailureReason.INTERNAL_ERROR, 500),
    ],
)
async def test_verify_failures_share_one_message(http, otp_service, reason, status):
    otp_service.verify.return_value = VerifyResult(ok=False, reason=reason)

    resp = await http.post("/api/verify-otp", json={"code": "482913"})

    assert resp.status_code == status
    assert resp.json() == {"success": False, "message": "Invalid or expired code"}


@pytest.mark.asyncio
async def test_verify_bad_format(http, otp_service):
    otp_service.verify.return_value = VerifyResult(ok=False, reason=FailureReason.INVALID_FORMAT)

    resp = await http.post("/api/verify-otp", json={"code": "12345"})

    assert resp.status_code == 400
    assert "6 digits" in resp.json()["message"]


@pytest.mark.asyncio
async def test_verify_rejects_bad_bodies(http, otp_service):
    resp = await http.post(
        "/api/verify-otp", content=b"{oops", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid JSON in request body"

    for body in ({}, {"code": 123456}, {"code": ""}, ["482913"]):
        resp = await http.post("/api/verify-otp", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == "OTP code is required"

    otp_service.verify.assert_not_awaited()


# ── /health ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(http):
    resp = await http.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert "timestamp" in resp.json()


# ── /telegram/webhook ────────────────────────────────────

@pytest.mark.asyncio
async def test_webhook_routes_message_and_replies(http, command_router, bot_client):
    update = {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "from": {"id": 42, "first_name": "Ada", "last_name": "Lovelace"},
            "chat": {"id": 4242},
            "text": "/start",
        },
    }

    resp = await http.post("/telegram/webhook", json=update)

    assert resp.status_code == 200
    text, user = command_router.route.await_args.args
    assert text == "/start"
    assert user.id == 42
    assert user.full_name == "Ada Lovelace"
    bot_client.send_message.assert_awaited_once_with(4242, "hi", "Markdown")


@pytest.mark.asyncio
async def test_webhook_ignores_non_text_updates(http, command_router, bot_client):
    resp = await http.post("/telegram/webhook", json={"update_id": 2, "edited_message": {}})

    assert resp.status_code == 200
    command_router.route.assert_not_awaited()
    bot_client.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_checks_secret_token(http, command_router, monkeypatch):
    monkeypatch.setattr(settings, "telegram_webhook_secret", "s3cret")
    update = {"message": {"from": {"id": 1}, "chat": {"id": 1}, "text": "/help"}}

    resp = await http.post("/telegram/webhook", json=update)
    assert resp.status_code == 403
    command_router.route.assert_not_awaited()

    resp = await http.post(
        "/telegram/webhook",
        json=update,
        headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
    )
    assert resp.status_code == 200
    command_router.route.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    [
        {"from": {"id": 42}, "chat": None, "text": "/start"},
        {"from": {"id": 42}, "chat": {"id": 42}, "text": 123},
        {"from": {"id": 42}, "text": "/start"},
    ],
)
async def test_webhook_ignores_malformed_messages(http, command_router, bot_client, message):
    resp = await http.post("/telegram/webhook", json={"update_id": 3, "message": message})

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    command_router.route.assert_not_awaited()
    bot_client.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_treats_unreadable_sender_as_unknown(http, command_router, bot_client):
    update = {"message": {"from": {"id": "not-a-number"}, "chat": {"id": 9}, "text": "/start"}}

    resp = await http.post("/telegram/webhook", json=update)

    assert resp.status_code == 200
    assert command_router.route.await_args.args == ("/start", None)
    bot_client.send_message.assert_awaited_once()
