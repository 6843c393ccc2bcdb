"""Store client — one persistent connection to the key/value store.

Only one command may be in flight on the connection at a time.  The client
enforces this itself with an ``asyncio.Lock`` held across the write of a
command and the read of its reply, so concurrent callers queue rather than
receiving each other's replies.
"""

from __future__ import annotations

import asyncio
import logging

from telegram_otp.store.errors import (
    NotConnectedError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)
from telegram_otp.store.protocol import (
    BulkString,
    ErrorReply,
    Integer,
    Reply,
    SimpleString,
    encode_command,
    parse_reply,
    read_frame,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 5.0


class StoreClient:
    """Async RESP client over a single socket.

    Usage::

        async with StoreClient("127.0.0.1", 6379) as client:
            await client.set_with_ttl("otp:123456", 300, payload)
    """

    def __init__(
        self,
        host: str,
        port: int,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = command_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._lock = asyncio.Lock()
        self._poisoned = False
        self.connected = False

    async def __aenter__(self) -> StoreClient:
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Lifecycle ────────────────────────────────────────

    async def open(self) -> None:
        """Connect to the store; raises ``StoreConnectionError`` on failure."""
        await self._connect()
        self.connected = True
        logger.info("Connected to store at %s:%s", self._host, self._port)

    async def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        was_connected = self.connected
        self.connected = False
        await self._drop_socket()
        if was_connected:
            logger.info("Disconnected from store at %s:%s", self._host, self._port)

    async def _connect(self) -> None:
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port), self._timeout
            )
        except (OSError, asyncio.TimeoutError) as exc:
            raise StoreConnectionError(
                f"cannot connect to store at {self._host}:{self._port}: {exc}"
            ) from exc
        self._poisoned = False

    async def _drop_socket(self) -> None:
        writer, self._reader, self._writer = self._writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as exc:
            logger.debug("Error while closing store socket: %s", exc)

    # ── Command execution ────────────────────────────────

    async def execute(self, *command: str | int) -> Reply:
        """Send one command and return its decoded reply.

        A timed-out or broken exchange leaves a reply of unknown fate on the
        socket, so the connection is discarded and re-established before the
        next command.
        """
        if not self.connected:
            raise NotConnectedError("store client is not connected")

        async with self._lock:
            if self._poisoned or self._writer is None:
                logger.warning("Re-establishing store connection before %s", command[0])
                await self._drop_socket()
                await self._connect()

            reader, writer = self._reader, self._writer
            if reader is None or writer is None:
                raise NotConnectedError("store connection is not established")

            try:
                frame = await asyncio.wait_for(
                    _exchange(reader, writer, encode_command(*command)), self._timeout
                )
            except asyncio.TimeoutError as exc:
                self._poisoned = True
                raise StoreTimeoutError(
                    f"no reply to {command[0]} within {self._timeout}s"
                ) from exc
            except (OSError, asyncio.IncompleteReadError, asyncio.LimitOverrunError) as exc:
                self._poisoned = True
                raise StoreConnectionError(f"store connection lost: {exc}") from exc
            except asyncio.CancelledError:
                self._poisoned = True
                raise

        return parse_reply(frame)

    # ── Typed primitives ─────────────────────────────────

    async def set_with_ttl(self, key: str, ttl_seconds: int, value: str) -> bool:
        """``SETEX``; ``True`` when the store acknowledged with ``OK``."""
        reply = _raise_for_error(await self.execute("SETEX", key, ttl_seconds, value))
        return isinstance(reply, SimpleString) and reply.value == "OK"

    async def get(self, key: str) -> str | None:
        """``GET``; ``None`` when the key does not exist."""
        reply = _raise_for_error(await self.execute("GET", key))
        if not isinstance(reply, BulkString):
            raise StoreError(f"unexpected reply to GET: {reply!r}")
        return reply.value

    async def delete(self, key: str) -> bool:
        """``DEL``; ``True`` when exactly one key was removed."""
        reply = _raise_for_error(await self.execute("DEL", key))
        return isinstance(reply, Integer) and reply.value == 1

    async def exists(self, key: str) -> bool:
        reply = _raise_for_error(await self.execute("EXISTS", key))
        return isinstance(reply, Integer) and reply.value == 1


async def _exchange(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter, request: bytes
) -> bytes:
    writer.write(request)
    await writer.drain()
    return await read_frame(reader)


def _raise_for_error(reply: Reply) -> Reply:
    if isinstance(reply, ErrorReply):
        raise StoreError(reply.message)
    return reply
