"""Protocol constants and server list configuration."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "mcping"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_PORT = 25565
# 1.15.2
DEFAULT_PROTOCOL_VERSION = 578
DEFAULT_TIMEOUT = 10.0

# Largest length a 3-byte varint can carry; the game applies the same limit.
MAX_PACKET_SIZE = 2097151


class PacketId(IntEnum):
    """Packet IDs used in the Handshaking and Status states."""

    HANDSHAKE = 0x00
    STATUS_REQUEST = 0x00
    STATUS_RESPONSE = 0x00
    PING = 0x01
    PONG = 0x01


class NextState(IntEnum):
    """Requested state in the handshake packet."""

    STATUS = 1


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for a single Minecraft server."""

    name: str
    host: str
    port: int = DEFAULT_PORT
    protocol_version: int = DEFAULT_PROTOCOL_VERSION


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    default_server: str | None
    servers: dict[str, ServerConfig]


def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    """Load and parse the configuration file.

    Returns an empty configuration if no config file exists.
    """
    if not path.exists():
        return AppConfig(default_server=None, servers={})

    with path.open("rb") as f:
        raw = tomllib.load(f)

    defaults = raw.get("defaults", {})

    servers: dict[str, ServerConfig] = {}
    for key, val in raw.get("servers", {}).items():
        servers[key] = ServerConfig(
            name=val.get("name", key),
            host=val["host"],
            port=val.get("port", DEFAULT_PORT),
            protocol_version=val.get("protocol_version", DEFAULT_PROTOCOL_VERSION),
        )

    return AppConfig(default_server=defaults.get("server"), servers=servers)
