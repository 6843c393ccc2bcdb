"""Tests for environment-driven settings."""

import pytest

from telegram_otp.config import ConfigurationError, Settings


def test_missing_bot_token_is_rejected(monkeypatch):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)

    with pytest.raises(ConfigurationError, match="TELEGRAM_BOT_TOKEN is required"):
        Settings(_env_file=None).require_bot_token()


def test_values_come_from_environment(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("REDIS_HOST", "redis.internal")
    monkeypatch.setenv("REDIS_PORT", "6380")
    monkeypatch.setenv("RATE_LIMIT_WINDOW", "30000")

    cfg = Settings(_env_file=None)

    assert cfg.require_bot_token() == "123:abc"
    assert cfg.redis_host == "redis.internal"
    assert cfg.redis_port == 6380
    assert cfg.rate_limit_window == 30_000
    assert cfg.server_port == 3000
    assert cfg.otp_ttl_seconds == 300
