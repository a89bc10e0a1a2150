"""Exceptions raised by the Server List Ping client."""

from __future__ import annotations


class PingError(Exception):
    """Base exception for Server List Ping errors."""


class ConnectionFailed(PingError):
    """Raised when the TCP connection to the server cannot be established."""


class ConnectionClosed(PingError):
    """Raised when the stream ends before a complete value has been read."""


class ConnectionTimeout(ConnectionClosed):
    """Raised when the socket times out in the middle of an exchange."""


class ProtocolError(PingError):
    """Base exception for data that does not follow the wire protocol."""


class MalformedVarint(ProtocolError):
    """Raised when a varint is unterminated or runs past its buffer."""


class MalformedPacket(ProtocolError):
    """Raised when a packet body cannot be decoded."""


class PacketTooLarge(ProtocolError):
    """Raised when a frame declares a length above the allowed maximum."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"Packet length {length} exceeds limit of {limit} bytes")
        self.length = length
        self.limit = limit


class UnexpectedPacket(ProtocolError):
    """Raised when the server sends a packet ID the current state does not expect."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Unexpected packet (expected ID {expected:#04x}, got {actual:#04x})"
        )
        self.expected = expected
        self.actual = actual


class InvalidStatusJson(ProtocolError):
    """Raised when the status response is not valid status JSON."""


class PingMismatch(ProtocolError):
    """Raised when the pong payload differs from the ping that was sent."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Pong payload {actual} does not match ping {expected}")
        self.expected = expected
        self.actual = actual


class InvalidState(PingError):
    """Raised when an operation is not valid in the connection's current state."""


class NotConnected(InvalidState):
    """Raised when an operation needs an open connection and there is none."""
