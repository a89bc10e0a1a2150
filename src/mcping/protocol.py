"""Server List Ping packet encoding and decoding."""

from __future__ import annotations

import random
import struct
from dataclasses import dataclass
from typing import ClassVar

from mcping.config import NextState, PacketId
from mcping.errors import MalformedPacket
from mcping.status import ServerStatus, parse_status
from mcping.varint import encode_varint, encode_varint32, unpack_varint

_PORT = struct.Struct(">H")
_LONG = struct.Struct(">q")


def encode_string(text: str) -> bytes:
    """Encode a string as its UTF-8 byte length (varint) followed by the bytes."""
    data = text.encode("utf-8")
    return encode_varint(len(data)) + data


def unpack_string(data: bytes, offset: int = 0) -> tuple[str, int]:
    """Decode a length-prefixed string from a buffer.

    Returns (text, offset just past the string).
    """
    length, offset = unpack_varint(data, offset)
    end = offset + length
    if end > len(data):
        msg = f"String length {length} runs past end of packet"
        raise MalformedPacket(msg)
    try:
        text = data[offset:end].decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"String is not valid UTF-8: {e}"
        raise MalformedPacket(msg) from e
    return text, end


def new_ping_payload() -> int:
    """Pick a random signed 64-bit payload for a ping packet."""
    return random.getrandbits(64) - (1 << 63)


@dataclass(frozen=True)
class Handshake:
    """First packet on a connection, announcing the protocol and next state.

    Wire format: [protocol_version:varint][address:string][port:u16][next_state:varint]
    """

    packet_id: ClassVar[int] = PacketId.HANDSHAKE

    protocol_version: int
    server_address: str
    server_port: int
    next_state: int = NextState.STATUS

    def encode(self) -> bytes:
        """Encode the packet body for transmission."""
        return (
            encode_varint32(self.protocol_version)
            + encode_string(self.server_address)
            + _PORT.pack(self.server_port)
            + encode_varint(self.next_state)
        )


@dataclass(frozen=True)
class StatusRequest:
    """Asks the server for its status JSON. Has no fields."""

    packet_id: ClassVar[int] = PacketId.STATUS_REQUEST

    def encode(self) -> bytes:
        return b""


@dataclass(frozen=True)
class StatusResponse:
    """The server's reply to a status request: one length-prefixed JSON string."""

    packet_id: ClassVar[int] = PacketId.STATUS_RESPONSE

    json_payload: str

    def encode(self) -> bytes:
        return encode_string(self.json_payload)

    @classmethod
    def decode(cls, body: bytes) -> StatusResponse:
        """Decode a packet body (excluding the length prefix and packet ID)."""
        json_payload, _ = unpack_string(body)
        return cls(json_payload=json_payload)

    def status(self) -> ServerStatus:
        """Parse the JSON payload into a ServerStatus."""
        return parse_status(self.json_payload)


@dataclass(frozen=True)
class Ping:
    """Ping request carrying an opaque value the server echoes back.

    Wire format: [payload:i64]
    """

    packet_id: ClassVar[int] = PacketId.PING

    payload: int

    def __post_init__(self) -> None:
        if not -(1 << 63) <= self.payload < (1 << 63):
            msg = f"Ping payload must fit in a signed 64-bit integer: {self.payload}"
            raise ValueError(msg)

    def encode(self) -> bytes:
        return _LONG.pack(self.payload)

    @classmethod
    def decode(cls, body: bytes) -> Ping:
        """Decode a packet body (excluding the length prefix and packet ID)."""
        if len(body) != _LONG.size:
            msg = f"Expected {_LONG.size} byte ping payload, got {len(body)} bytes"
            raise MalformedPacket(msg)
        (payload,) = _LONG.unpack(body)
        return cls(payload=payload)


@dataclass(frozen=True)
class Pong(Ping):
    """The server's echo of a Ping."""

    packet_id: ClassVar[int] = PacketId.PONG
