"""Shared fixtures — an in-process fake RESP store server."""

from __future__ import annotations

import asyncio
import time

import pytest_asyncio

from telegram_otp.store.client import StoreClient


class FakeStoreServer:
    """Minimal RESP server speaking SETEX / GET / DEL / EXISTS.

    ``stall`` swallows commands without replying; ``delay`` postpones each
    reply by that many seconds.  Every received command is recorded.
    """

    def __init__(self) -> None:
        self.data: dict[str, tuple[str, float]] = {}
        self.commands: list[list[str]] = []
        self.connections = 0
        self.stall = False
        self.delay = 0.0
        self.host = "127.0.0.1"
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self.host, 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        assert self._server is not None
        self._server.close()
        for writer in self._writers:
            writer.close()
        await self._server.wait_closed()

    def seed(self, key: str, value: str, ttl_seconds: int = 300) -> None:
        self.data[key] = (value, time.monotonic() + ttl_seconds)

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.append(writer)
        try:
            while True:
                args = await _read_command(reader)
                self.commands.append(args)
                if self.stall:
                    continue
                if self.delay:
                    await asyncio.sleep(self.delay)
                writer.write(self._dispatch(args))
                await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    def _lookup(self, key: str) -> str | None:
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self.data[key]
            return None
        return value

    def _dispatch(self, args: list[str]) -> bytes:
        name = args[0].upper()
        if name == "SETEX" and len(args) == 4:
            ttl = int(args[2])
            if ttl <= 0:
                return b"-ERR invalid expire time in 'setex' command\r\n"
            self.data[args[1]] = (args[3], time.monotonic() + ttl)
            return b"+OK\r\n"
        if name == "GET" and len(args) == 2:
            value = self._lookup(args[1])
            if value is None:
                return b"$-1\r\n"
            data = value.encode()
            return b"$%d\r\n%s\r\n" % (len(data), data)
        if name == "DEL" and len(args) == 2:
            existed = self._lookup(args[1]) is not None
            self.data.pop(args[1], None)
            return b":%d\r\n" % int(existed)
        if name == "EXISTS" and len(args) == 2:
            return b":%d\r\n" % int(self._lookup(args[1]) is not None)
        return f"-ERR unknown command '{args[0]}'\r\n".encode()


async def _read_command(reader: asyncio.StreamReader) -> list[str]:
    header = await reader.readuntil(b"\r\n")
    count = int(header[1:-2])
    args = []
    for _ in range(count):
        length_line = await reader.readuntil(b"\r\n")
        length = int(length_line[1:-2])
        data = await reader.readexactly(length + 2)
        args.append(data[:-2].decode())
    return args


@pytest_asyncio.fixture
async def fake_store():
    server = FakeStoreServer()
    await server.start()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def store_client(fake_store: FakeStoreServer):
    client = StoreClient(fake_store.host, fake_store.port, command_timeout=0.5)
    await client.open()
    yield client
    await client.close()
