"""Records persisted in the key/value store, serialised as JSON."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    """Identity of the Telegram user a code was issued to."""

    id: int
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None

    @classmethod
    def from_telegram(cls, data: dict) -> TelegramUser:
        """Build from a Telegram ``User`` object, deriving ``full_name``."""
        first_name = data.get("first_name")
        last_name = data.get("last_name")
        return cls(
            id=data["id"],
            username=data.get("username"),
            first_name=first_name,
            last_name=last_name,
            full_name=" ".join(part for part in (first_name, last_name) if part),
        )


class CodeRecord(BaseModel):
    """Stored under ``otp:{code}``.  Timestamps are epoch milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    code: str
    user: TelegramUser
    created_at: int = Field(alias="createdAt")
    expires_at: int = Field(alias="expiresAt")


class RateLimitRecord(BaseModel):
    """Stored under ``rate_limit:{identity}``.  ``reset_time`` is epoch ms."""

    model_config = ConfigDict(populate_by_name=True)

    count: int
    reset_time: int = Field(alias="resetTime")


def dump_record(record: BaseModel) -> str:
    return record.model_dump_json(by_alias=True)
