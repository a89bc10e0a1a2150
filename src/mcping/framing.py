"""Length-prefixed packet framing over a TCP socket.

Every packet on the wire is ``[length:varint][packet_id:varint][body]``, where
``length`` counts the packet ID and body but not itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mcping.config import MAX_PACKET_SIZE
from mcping.errors import ConnectionClosed, MalformedPacket, PacketTooLarge
from mcping.varint import decode_varint, encode_varint, unpack_varint

if TYPE_CHECKING:
    import socket

log = logging.getLogger(__name__)


class SocketReader:
    """Present a socket as a ``read(n)`` stream for varint decoding."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def read(self, size: int, /) -> bytes:
        return recv_exact(self._sock, size)


def frame_packet(packet_id: int, body: bytes) -> bytes:
    """Wrap a packet body in its length-prefixed envelope."""
    inner = encode_varint(packet_id) + body
    return encode_varint(len(inner)) + inner


def write_packet(sock: socket.socket, packet_id: int, body: bytes) -> None:
    """Frame a packet and send all of it."""
    data = frame_packet(packet_id, body)
    sock.sendall(data)
    log.debug("Sent packet %#04x (%d bytes framed)", packet_id, len(data))


def read_packet(
    sock: socket.socket, max_size: int = MAX_PACKET_SIZE
) -> tuple[int, bytes]:
    """Read one complete frame and return (packet_id, body).

    The length prefix is checked against ``max_size`` before the payload is
    read, so a corrupt or hostile length never triggers a large allocation.
    """
    length = decode_varint(SocketReader(sock))
    if length > max_size:
        raise PacketTooLarge(length, max_size)
    if length == 0:
        msg = "Received an empty frame with no packet ID"
        raise MalformedPacket(msg)

    payload = recv_exact(sock, length)
    packet_id, offset = unpack_varint(payload)
    log.debug("Received packet %#04x (%d byte frame)", packet_id, length)
    return packet_id, payload[offset:]


def recv_exact(sock: socket.socket, num_bytes: int) -> bytes:
    """Read exactly num_bytes from the socket, handling partial reads."""
    data = bytearray()
    while len(data) < num_bytes:
        chunk = sock.recv(num_bytes - len(data))
        if not chunk:
            msg = (
                "Connection closed by server"
                f" ({len(data)} of {num_bytes} bytes received)"
            )
            raise ConnectionClosed(msg)
        data.extend(chunk)

    return bytes(data)
