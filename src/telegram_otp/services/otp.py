"""OTP service — issues codes to bot users and redeems them for web callers."""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from enum import Enum

from telegram_otp.clock import Clock, now_ms
from telegram_otp.models.records import CodeRecord, TelegramUser
from telegram_otp.store.code_store import CodeStore
from telegram_otp.store.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Logical validity window, checked at redemption independently of the store TTL
CODE_VALIDITY_MS = 300_000

DEFAULT_TTL_SECONDS = 300
DEFAULT_RATE_LIMIT_WINDOW_MS = 60_000

_CODE_RE = re.compile(r"[0-9]{6}")


def generate_code() -> str:
    """Return a cryptographically random 6-digit code (leading zeros kept)."""
    return f"{secrets.randbelow(1_000_000):06d}"


def is_valid_code_format(code: str) -> bool:
    return bool(_CODE_RE.fullmatch(code))


def is_expired(created_at: int, ttl_ms: int, now: int) -> bool:
    return now - created_at >= ttl_ms


class FailureReason(str, Enum):
    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INTERNAL_ERROR = "internal_error"


@dataclass
class IssueResult:
    """Outcome of :meth:`OTPService.issue`."""

    code: str | None = None
    ttl_seconds: int = 0
    rate_limited: bool = False
    window_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.code is not None


@dataclass
class VerifyResult:
    """Outcome of :meth:`OTPService.verify`."""

    ok: bool
    user: TelegramUser | None = None
    reason: FailureReason | None = None


class OTPService:
    """Glue between the bot / HTTP surfaces and the store components."""

    def __init__(
        self,
        code_store: CodeStore,
        rate_limiter: RateLimiter,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        rate_limit_window_ms: int = DEFAULT_RATE_LIMIT_WINDOW_MS,
        clock: Clock = now_ms,
    ) -> None:
        self._codes = code_store
        self._limiter = rate_limiter
        self._ttl_seconds = ttl_seconds
        self._window_ms = rate_limit_window_ms
        self._clock = clock

    async def issue(self, user: TelegramUser) -> IssueResult:
        """Generate and store a code for *user*, subject to the rate limit."""
        if not await self._limiter.try_acquire(user.id, self._window_ms):
            return IssueResult(rate_limited=True, window_ms=self._window_ms)

        code = generate_code()
        now = self._clock()
        record = CodeRecord(
            code=code,
            user=user,
            created_at=now,
            expires_at=now + self._ttl_seconds * 1000,
        )
        if not await self._codes.put(code, record, self._ttl_seconds):
            logger.error("Could not store code for user %s", user.id)
            return IssueResult()

        logger.info("OTP generated for user %s (%s)", user.id, user.full_name)
        return IssueResult(code=code, ttl_seconds=self._ttl_seconds)

    async def verify(self, code: str) -> VerifyResult:
        """Redeem *code* at most once.

        The record is deleted on the success path and on the expired path,
        so any later attempt finds it absent.
        """
        if not is_valid_code_format(code):
            return VerifyResult(ok=False, reason=FailureReason.INVALID_FORMAT)

        try:
            record = await self._codes.get(code)
            if record is None:
                logger.info("OTP verification failed: code %s not found", code)
                return VerifyResult(ok=False, reason=FailureReason.NOT_FOUND)

            if is_expired(record.created_at, CODE_VALIDITY_MS, self._clock()):
                await self._codes.delete(code)
                logger.info("OTP verification failed: code %s expired", code)
                return VerifyResult(ok=False, reason=FailureReason.EXPIRED)

            # Only the caller whose DEL removed the key wins a concurrent race
            if not await self._codes.delete(code):
                logger.info("OTP verification failed: code %s already consumed", code)
                return VerifyResult(ok=False, reason=FailureReason.NOT_FOUND)
        except Exception:
            logger.exception("Error during OTP verification")
            return VerifyResult(ok=False, reason=FailureReason.INTERNAL_ERROR)

        logger.info(
            "OTP verification successful for user %s (%s)",
            record.user.id,
            record.user.full_name,
        )
        return VerifyResult(ok=True, user=record.user)
