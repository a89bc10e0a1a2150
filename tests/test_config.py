"""Tests for configuration loading."""

from pathlib import Path
from textwrap import dedent

from mcping.config import (
    DEFAULT_PORT,
    DEFAULT_PROTOCOL_VERSION,
    NextState,
    PacketId,
    load_config,
)


class TestLoadConfig:
    def test_empty_config_when_no_file(self, tmp_path: Path):
        config = load_config(tmp_path / "nonexistent.toml")

        assert config.default_server is None
        assert config.servers == {}

    def test_load_full_config(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            dedent("""\
            [defaults]
            server = "home"

            [servers.home]
            name = "Home Server"
            host = "192.168.1.1"
            port = 25570
            protocol_version = 767
        """)
        )

        config = load_config(config_file)

        assert config.default_server == "home"
        server = config.servers["home"]
        assert server.name == "Home Server"
        assert server.host == "192.168.1.1"
        assert server.port == 25570
        assert server.protocol_version == 767

    def test_defaults_for_server_fields(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            dedent("""\
            [servers.s1]
            host = "10.0.0.1"
        """)
        )

        config = load_config(config_file)
        server = config.servers["s1"]
        assert server.name == "s1"
        assert server.port == DEFAULT_PORT
        assert server.protocol_version == DEFAULT_PROTOCOL_VERSION

    def test_empty_file(self, tmp_path: Path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("")

        config = load_config(config_file)
        assert config.default_server is None
        assert config.servers == {}


class TestConstants:
    def test_default_port(self):
        assert DEFAULT_PORT == 25565

    def test_packet_ids(self):
        assert PacketId.HANDSHAKE == 0x00
        assert PacketId.STATUS_REQUEST == 0x00
        assert PacketId.STATUS_RESPONSE == 0x00
        assert PacketId.PING == 0x01
        assert PacketId.PONG == 0x01

    def test_next_state(self):
        assert NextState.STATUS == 1
