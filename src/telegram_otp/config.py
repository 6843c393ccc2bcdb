"""Telegram OTP backend — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """A required setting is missing or invalid."""


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Telegram ──────────────────────────────────────────
    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""
    telegram_api_base_url: str = "https://api.telegram.org"

    # ── Key/value store ───────────────────────────────────
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_command_timeout: float = 5.0

    # ── OTP / rate limiting ───────────────────────────────
    otp_ttl_seconds: int = 300
    rate_limit_window: int = 60_000  # milliseconds

    # ── App ───────────────────────────────────────────────
    app_name: str = "Telegram OTP"
    server_port: int = 3000
    cors_origins: list[str] = ["*"]
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def require_bot_token(self) -> str:
        if not self.telegram_bot_token:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN is required")
        return self.telegram_bot_token


# Singleton settings instance
settings = Settings()
