"""RESP wire format — request encoding and reply decoding.

Requests are sent as RESP arrays of bulk strings so that values containing
spaces or line breaks (JSON payloads) are framed by length, not by
delimiters.  Replies are one of four shapes:

* ``+OK``            → :class:`SimpleString`
* ``:1``             → :class:`Integer`
* ``$5\\r\\nhello``   → :class:`BulkString` (``$-1`` is the nil marker)
* ``-ERR ...``       → :class:`ErrorReply`
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

CRLF = b"\r\n"


@dataclass(frozen=True)
class SimpleString:
    value: str


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class BulkString:
    """Length-prefixed payload; ``value`` is ``None`` for the nil reply."""

    value: str | None


@dataclass(frozen=True)
class ErrorReply:
    message: str


Reply = SimpleString | Integer | BulkString | ErrorReply


def encode_command(*args: str | int) -> bytes:
    """Encode ``SETEX key 300 value`` style arguments as a RESP array."""
    out = [f"*{len(args)}".encode() + CRLF]
    for arg in args:
        data = str(arg).encode("utf-8")
        out.append(f"${len(data)}".encode() + CRLF)
        out.append(data + CRLF)
    return b"".join(out)


def parse_reply(raw: bytes) -> Reply:
    """Decode one complete reply frame.

    Never raises: malformed or truncated input decodes to an
    :class:`ErrorReply` describing what was wrong, which callers treat like
    any other store-reported failure.
    """
    if not raw:
        return ErrorReply("empty reply")

    header, sep, rest = raw.partition(CRLF)
    if not sep:
        return ErrorReply(f"incomplete reply: {raw[:32]!r}")

    prefix, body = header[:1], header[1:].decode("utf-8", errors="replace")

    if prefix == b"+":
        return SimpleString(body)
    if prefix == b"-":
        return ErrorReply(body)
    if prefix == b":":
        try:
            return Integer(int(body))
        except ValueError:
            return ErrorReply(f"invalid integer reply: {body!r}")
    if prefix == b"$":
        try:
            length = int(body)
        except ValueError:
            return ErrorReply(f"invalid bulk length: {body!r}")
        if length < 0:
            return BulkString(None)
        if len(rest) < length + 2 or rest[length : length + 2] != CRLF:
            return ErrorReply("truncated bulk reply")
        return BulkString(rest[:length].decode("utf-8", errors="replace"))

    return ErrorReply(f"unsupported reply prefix: {prefix!r}")


async def read_frame(reader: asyncio.StreamReader) -> bytes:
    """Read exactly one reply frame from *reader* and return its raw bytes.

    Raises :class:`asyncio.IncompleteReadError` if the peer closes the
    connection mid-frame.
    """
    header = await reader.readuntil(CRLF)
    if header[:1] != b"$":
        return header
    try:
        length = int(header[1:-2])
    except ValueError:
        return header
    if length < 0:
        return header
    payload = await reader.readexactly(length + 2)
    return header + payload
