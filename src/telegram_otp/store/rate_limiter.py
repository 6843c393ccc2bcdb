"""Fixed-window rate limiter keyed by identity under ``rate_limit:{identity}``.

The effective policy is one acquisition per window: any record found inside
its window with ``count >= 1`` denies.  The increment branch is kept for a
record whose count is still zero.
"""

from __future__ import annotations

import asyncio
import logging
import math

from pydantic import ValidationError

from telegram_otp.clock import Clock, now_ms
from telegram_otp.models.records import RateLimitRecord, dump_record
from telegram_otp.store.client import StoreClient
from telegram_otp.store.errors import StoreClientError

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate_limit:"
MAX_PER_WINDOW = 1


def rate_limit_key(identity: int | str) -> str:
    return f"{KEY_PREFIX}{identity}"


class RateLimiter:
    """Read-modify-write limiter on top of the shared store client.

    Fails open: an unreadable record or a failed read allows the request.
    The GET, decide, SETEX sequence runs under one lock so overlapping calls
    see each other's writes.
    """

    def __init__(self, client: StoreClient, clock: Clock = now_ms) -> None:
        self._client = client
        self._clock = clock
        self._lock = asyncio.Lock()

    async def try_acquire(self, identity: int | str, window_ms: int) -> bool:
        """Return ``True`` if *identity* may proceed in the current window."""
        async with self._lock:
            return await self._try_acquire(identity, window_ms)

    async def _try_acquire(self, identity: int | str, window_ms: int) -> bool:
        key = rate_limit_key(identity)
        try:
            raw = await self._client.get(key)
        except StoreClientError as exc:
            logger.error("Rate limit lookup failed for %s, allowing: %s", identity, exc)
            return True

        now = self._clock()
        if raw is None:
            await self._start_window(key, now, window_ms)
            return True

        try:
            record = RateLimitRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Corrupt rate limit record for %s, allowing: %s", identity, exc)
            return True

        if now > record.reset_time:
            await self._start_window(key, now, window_ms)
            return True

        if record.count >= MAX_PER_WINDOW:
            logger.info("Rate limit hit for %s", identity)
            return False

        record.count += 1
        remaining = max(1, math.ceil((record.reset_time - now) / 1000))
        await self._write(key, record, remaining)
        return True

    async def _start_window(self, key: str, now: int, window_ms: int) -> None:
        record = RateLimitRecord(count=1, reset_time=now + window_ms)
        await self._write(key, record, math.ceil(window_ms / 1000))

    async def _write(self, key: str, record: RateLimitRecord, ttl_seconds: int) -> None:
        try:
            await self._client.set_with_ttl(key, ttl_seconds, dump_record(record))
        except StoreClientError as exc:
            logger.error("Failed to write rate limit record %s: %s", key, exc)
