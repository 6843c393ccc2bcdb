"""Code store — single-use code records kept under ``otp:{code}``."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from telegram_otp.models.records import CodeRecord, dump_record
from telegram_otp.store.client import StoreClient
from telegram_otp.store.errors import DecodeError, StoreClientError

logger = logging.getLogger(__name__)

KEY_PREFIX = "otp:"


def code_key(code: str) -> str:
    return f"{KEY_PREFIX}{code}"


class CodeStore:
    """Create, read and delete code records.

    None of the methods raise: store failures turn into ``False`` / ``None``
    and are logged.  Records are never cached locally.
    """

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    async def put(self, code: str, record: CodeRecord, ttl_seconds: int) -> bool:
        """Store *record* with a store-side expiry of *ttl_seconds*."""
        try:
            payload = dump_record(record)
            return await self._client.set_with_ttl(code_key(code), ttl_seconds, payload)
        except (StoreClientError, ValueError) as exc:
            logger.error("Failed to store code record: %s", exc)
            return False

    async def get(self, code: str) -> CodeRecord | None:
        """Return the record, or ``None`` if absent, unreadable or corrupt."""
        try:
            raw = await self._client.get(code_key(code))
        except StoreClientError as exc:
            logger.error("Failed to read code record: %s", exc)
            return None

        if raw is None:
            return None

        try:
            return _decode(raw)
        except DecodeError as exc:
            logger.error("Discarding corrupt code record under %s: %s", code_key(code), exc)
            return None

    async def delete(self, code: str) -> bool:
        """Delete the record; ``True`` when exactly one key was removed."""
        try:
            return await self._client.delete(code_key(code))
        except StoreClientError as exc:
            logger.error("Failed to delete code record: %s", exc)
            return False


def _decode(raw: str) -> CodeRecord:
    try:
        return CodeRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise DecodeError(str(exc)) from exc
