"""Tests for packet framing over a socket."""

import random
from unittest.mock import MagicMock

import pytest

from mcping.errors import (
    ConnectionClosed,
    MalformedPacket,
    MalformedVarint,
    PacketTooLarge,
)
from mcping.framing import frame_packet, read_packet, recv_exact, write_packet
from mcping.varint import encode_varint


def _mock_socket(data: bytes, chunk_sizes=None):
    """Create a mock socket whose recv() serves data in the given chunk sizes.

    Without chunk sizes, each recv() returns as much as was asked for.
    Once the data runs out, recv() returns b"" as a closed socket does.
    """
    offset = 0
    sizes = iter(chunk_sizes or ())

    def mock_recv(num_bytes):
        nonlocal offset
        if offset >= len(data):
            return b""
        size = min(num_bytes, next(sizes, num_bytes))
        chunk = data[offset : offset + size]
        offset += len(chunk)
        return chunk

    mock_sock = MagicMock()
    mock_sock.recv.side_effect = mock_recv
    return mock_sock


class TestFramePacket:
    def test_empty_body(self):
        # length 1 (just the packet id), packet id 0
        assert frame_packet(0, b"") == b"\x01\x00"

    def test_length_covers_id_and_body(self):
        data = frame_packet(1, b"\x00" * 8)
        assert data[0] == 9
        assert data[1] == 1
        assert len(data) == 10

    def test_long_body_uses_multi_byte_length(self):
        body = b"x" * 300
        data = frame_packet(0, body)
        assert data[:2] == encode_varint(301)
        assert data[2:] == b"\x00" + body


class TestWritePacket:
    def test_sends_whole_frame_at_once(self):
        sock = MagicMock()
        write_packet(sock, 0, b"abc")
        sock.sendall.assert_called_once_with(b"\x04\x00abc")


class TestReadPacket:
    def test_read_single_packet(self):
        sock = _mock_socket(frame_packet(1, b"payload"))
        assert read_packet(sock) == (1, b"payload")

    def test_read_empty_body(self):
        sock = _mock_socket(frame_packet(0, b""))
        assert read_packet(sock) == (0, b"")

    def test_read_consecutive_packets(self):
        sock = _mock_socket(frame_packet(0, b"first") + frame_packet(1, b"second"))
        assert read_packet(sock) == (0, b"first")
        assert read_packet(sock) == (1, b"second")

    def test_one_byte_at_a_time(self):
        body = bytes(range(256)) * 4
        data = frame_packet(0, body)
        sock = _mock_socket(data, [1] * len(data))
        assert read_packet(sock) == (0, body)

    def test_arbitrary_chunk_sizes(self):
        rng = random.Random(1234)
        for size in (0, 1, 127, 128, 1000, 70000):
            body = rng.randbytes(size)
            data = frame_packet(0, body)
            chunks = [rng.randint(1, 64) for _ in range(len(data))]
            sock = _mock_socket(data, chunks)
            assert read_packet(sock) == (0, body)

    def test_multi_byte_packet_id(self):
        sock = _mock_socket(frame_packet(300, b"x"))
        assert read_packet(sock) == (300, b"x")

    def test_closed_after_length_prefix(self):
        sock = _mock_socket(encode_varint(50))
        with pytest.raises(ConnectionClosed, match="0 of 50 bytes"):
            read_packet(sock)

    def test_closed_mid_body(self):
        data = frame_packet(0, b"x" * 20)
        sock = _mock_socket(data[:10])
        with pytest.raises(ConnectionClosed):
            read_packet(sock)

    def test_closed_before_anything(self):
        sock = _mock_socket(b"")
        with pytest.raises(ConnectionClosed):
            read_packet(sock)

    def test_malformed_length_prefix(self):
        sock = _mock_socket(b"\x80" * 11)
        with pytest.raises(MalformedVarint):
            read_packet(sock)

    def test_length_above_limit(self):
        sock = _mock_socket(encode_varint(5000))
        with pytest.raises(PacketTooLarge) as exc_info:
            read_packet(sock, max_size=4096)

        assert exc_info.value.length == 5000
        assert exc_info.value.limit == 4096
        # Nothing past the length prefix was requested
        sock.recv.assert_called_with(1)

    def test_default_limit(self):
        sock = _mock_socket(encode_varint(2**31))
        with pytest.raises(PacketTooLarge):
            read_packet(sock)

    def test_zero_length_frame(self):
        sock = _mock_socket(b"\x00")
        with pytest.raises(MalformedPacket, match="empty frame"):
            read_packet(sock)

    def test_malformed_packet_id(self):
        sock = _mock_socket(b"\x02\x80\x80")
        with pytest.raises(MalformedVarint):
            read_packet(sock)


class TestRecvExact:
    def test_partial_reads_are_joined(self):
        sock = _mock_socket(b"abcdef", [2, 1, 3])
        assert recv_exact(sock, 6) == b"abcdef"
        assert sock.recv.call_count == 3

    def test_eof(self):
        sock = _mock_socket(b"abc")
        with pytest.raises(ConnectionClosed, match="3 of 6 bytes"):
            recv_exact(sock, 6)
