"""Unsigned LEB128 variable-length integers.

Minecraft uses varints for packet lengths, packet IDs and string lengths.
Each byte carries seven value bits, least significant group first; the high
bit is set on every byte except the last.
"""

from __future__ import annotations

from typing import Protocol

from mcping.errors import ConnectionClosed, MalformedVarint

MAX_VARINT_BYTES = 10
_MAX_VALUE = 1 << 64

_SEGMENT_BITS = 0x7F
_CONTINUE_BIT = 0x80


class ByteStream(Protocol):
    """Anything with a ``read(n)`` that returns up to ``n`` bytes."""

    def read(self, size: int, /) -> bytes: ...


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer below 2**64 as a varint."""
    if not 0 <= value < _MAX_VALUE:
        msg = f"Varint value out of range: {value}"
        raise ValueError(msg)

    out = bytearray()
    while True:
        byte = value & _SEGMENT_BITS
        value >>= 7
        if value:
            out.append(byte | _CONTINUE_BIT)
        else:
            out.append(byte)
            return bytes(out)


def encode_varint32(value: int) -> bytes:
    """Encode a signed 32-bit field, negative values as two's complement."""
    return encode_varint(value & 0xFFFFFFFF)


def decode_varint(stream: ByteStream) -> int:
    """Read a varint from a stream, one byte at a time.

    Raises:
        MalformedVarint: If more than ten bytes are read without termination.
        ConnectionClosed: If the stream ends in the middle of the varint.
    """
    result = 0
    for i in range(MAX_VARINT_BYTES):
        data = stream.read(1)
        if not data:
            msg = "Stream ended while reading varint"
            raise ConnectionClosed(msg)
        byte = data[0]
        result |= (byte & _SEGMENT_BITS) << (7 * i)
        if not byte & _CONTINUE_BIT:
            return _check_range(result)

    msg = f"Varint is longer than {MAX_VARINT_BYTES} bytes"
    raise MalformedVarint(msg)


def unpack_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varint from a buffer.

    Returns (value, offset just past the varint).
    """
    result = 0
    for i in range(MAX_VARINT_BYTES):
        if offset >= len(data):
            msg = "Buffer ended while reading varint"
            raise MalformedVarint(msg)
        byte = data[offset]
        offset += 1
        result |= (byte & _SEGMENT_BITS) << (7 * i)
        if not byte & _CONTINUE_BIT:
            return _check_range(result), offset

    msg = f"Varint is longer than {MAX_VARINT_BYTES} bytes"
    raise MalformedVarint(msg)


def _check_range(value: int) -> int:
    # A tenth byte above 0x01 spills past bit 63
    if value >= _MAX_VALUE:
        msg = f"Varint value does not fit in 64 bits: {value}"
        raise MalformedVarint(msg)
    return value
