"""Server List Ping client with connection state management."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from mcping.config import DEFAULT_PORT, DEFAULT_PROTOCOL_VERSION, DEFAULT_TIMEOUT
from mcping.errors import (
    ConnectionClosed,
    ConnectionFailed,
    ConnectionTimeout,
    InvalidState,
    NotConnected,
    PingMismatch,
    UnexpectedPacket,
)
from mcping.framing import read_packet, write_packet
from mcping.protocol import (
    Handshake,
    Ping,
    Pong,
    StatusRequest,
    StatusResponse,
    new_ping_payload,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self, TypeVar

    from mcping.status import ServerStatus

    T = TypeVar("T")

log = logging.getLogger(__name__)


class State(Enum):
    """Lifecycle of a Connection."""

    DISCONNECTED = "disconnected"
    HANDSHAKING = "handshaking"
    AWAITING_STATUS = "awaiting_status"
    STATUS_RECEIVED = "status_received"
    AWAITING_PONG = "awaiting_pong"
    PONG_RECEIVED = "pong_received"


@dataclass(frozen=True)
class ConnectionConfig:
    """Where and how to connect. Build with an address, then override as needed."""

    address: str
    port: int = DEFAULT_PORT
    protocol_version: int = DEFAULT_PROTOCOL_VERSION
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            msg = f"Port out of range: {self.port}"
            raise ValueError(msg)
        if not -(1 << 31) <= self.protocol_version < (1 << 31):
            msg = f"Protocol version out of range: {self.protocol_version}"
            raise ValueError(msg)

    def with_port(self, port: int) -> ConnectionConfig:
        """Return a copy that connects to a different port."""
        return dataclasses.replace(self, port=port)

    def with_protocol_version(self, protocol_version: int) -> ConnectionConfig:
        """Return a copy that announces a different protocol version."""
        return dataclasses.replace(self, protocol_version=protocol_version)

    def with_timeout(self, timeout: float) -> ConnectionConfig:
        """Return a copy with a different socket timeout."""
        return dataclasses.replace(self, timeout=timeout)

    def connect(self) -> Connection:
        """Open a connection to the configured server."""
        conn = Connection(self)
        conn.connect()
        return conn


def connect(
    address: str,
    port: int = DEFAULT_PORT,
    *,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    timeout: float = DEFAULT_TIMEOUT,
) -> Connection:
    """Connect to a server, using the default port and protocol unless given."""
    return ConnectionConfig(
        address=address,
        port=port,
        protocol_version=protocol_version,
        timeout=timeout,
    ).connect()


class Connection:
    """A single Server List Ping conversation over one TCP connection.

    Call status() first, then optionally ping(). A Connection is not safe to
    use from several threads at once; open one Connection per concurrent
    query instead.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self.last_status: ServerStatus | None = None
        self._sock: socket.socket | None = None
        self._state = State.DISCONNECTED

    @property
    def state(self) -> State:
        """Current position in the handshake/status/ping sequence."""
        return self._state

    @property
    def connected(self) -> bool:
        """Whether the connection has an open socket."""
        return self._sock is not None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def connect(self) -> None:
        """Open the TCP connection. Raises ConnectionFailed on any socket error."""
        if self._sock is not None:
            msg = "Already connected"
            raise InvalidState(msg)

        address, port = self.config.address, self.config.port
        try:
            sock = socket.create_connection(
                (address, port), timeout=self.config.timeout
            )
        except OSError as e:
            msg = f"Failed to connect to {address}:{port}: {e}"
            raise ConnectionFailed(msg) from e

        self._sock = sock
        self._set_state(State.HANDSHAKING)

    def close(self) -> None:
        """Close the TCP connection. There is no close packet in this protocol."""
        if self._sock is not None:
            with contextlib.suppress(OSError):
                self._sock.close()
            self._sock = None
        if self._state is not State.DISCONNECTED:
            self._set_state(State.DISCONNECTED)

    def status(self) -> ServerStatus:
        """Send the handshake and status request, and return the decoded status.

        May be called again after a previous status() on the same connection.
        """
        self._require_state(State.HANDSHAKING, State.STATUS_RECEIVED)
        return self._run(self._exchange_status)

    def ping(self, payload: int | None = None) -> float:
        """Send a ping and wait for the matching pong.

        Returns the round-trip time in seconds.
        """
        self._require_state(State.STATUS_RECEIVED, State.PONG_RECEIVED)
        if payload is None:
            payload = new_ping_payload()
        packet = Ping(payload)
        return self._run(lambda: self._exchange_ping(packet))

    def _exchange_status(self) -> ServerStatus:
        config = self.config
        # No need to wait between these two; the server reads them in order.
        self._send(Handshake(config.protocol_version, config.address, config.port))
        self._send(StatusRequest())
        self._set_state(State.AWAITING_STATUS)

        packet_id, body = read_packet(self._socket())
        if packet_id != StatusResponse.packet_id:
            raise UnexpectedPacket(StatusResponse.packet_id, packet_id)

        status = StatusResponse.decode(body).status()
        self.last_status = status
        self._set_state(State.STATUS_RECEIVED)
        return status

    def _exchange_ping(self, packet: Ping) -> float:
        start = time.perf_counter()
        self._send(packet)
        self._set_state(State.AWAITING_PONG)

        packet_id, body = read_packet(self._socket())
        if packet_id != Pong.packet_id:
            raise UnexpectedPacket(Pong.packet_id, packet_id)
        pong = Pong.decode(body)
        if pong.payload != packet.payload:
            raise PingMismatch(packet.payload, pong.payload)

        elapsed = max(time.perf_counter() - start, 0.0)
        self._set_state(State.PONG_RECEIVED)
        log.debug(
            "Pong from %s:%d after %.3fs",
            self.config.address,
            self.config.port,
            elapsed,
        )
        return elapsed

    def _run(self, exchange: Callable[[], T]) -> T:
        """Run one request/response exchange.

        Any failure part way through leaves the stream at an unknown frame
        boundary, so the connection is closed before the error propagates.
        """
        try:
            return exchange()
        except TimeoutError as e:
            self.close()
            msg = f"Timed out talking to {self.config.address}:{self.config.port}"
            raise ConnectionTimeout(msg) from e
        except OSError as e:
            self.close()
            msg = f"Connection lost: {e}"
            raise ConnectionClosed(msg) from e
        except BaseException:
            self.close()
            raise

    def _send(self, packet: Handshake | StatusRequest | Ping) -> None:
        write_packet(self._socket(), packet.packet_id, packet.encode())

    def _socket(self) -> socket.socket:
        if self._sock is None:
            msg = "Not connected"
            raise NotConnected(msg)
        return self._sock

    def _require_state(self, *allowed: State) -> None:
        if self._sock is None:
            msg = "Not connected"
            raise NotConnected(msg)
        if self._state not in allowed:
            names = ", ".join(s.name for s in allowed)
            msg = f"Cannot do that in state {self._state.name} (expected {names})"
            raise InvalidState(msg)

    def _set_state(self, state: State) -> None:
        log.debug(
            "%s:%d: %s -> %s",
            self.config.address,
            self.config.port,
            self._state.name,
            state.name,
        )
        self._state = state
