"""CLI entry point for the Server List Ping client."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import TYPE_CHECKING

from mcping.client import ConnectionConfig
from mcping.config import (
    DEFAULT_TIMEOUT,
    AppConfig,
    ServerConfig,
    load_config,
)
from mcping.errors import PingError
from mcping.formatting import format_motd

if TYPE_CHECKING:
    from mcping.status import ServerStatus


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mcping",
        description="Query a Minecraft server's status with Server List Ping",
    )
    parser.add_argument(
        "server",
        nargs="?",
        help="Server name (from config), host:port, or hostname",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="Port to connect to (overrides host:port and config)",
    )
    parser.add_argument(
        "--protocol-version",
        type=int,
        help="Protocol version to announce in the handshake",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Socket timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--no-ping",
        action="store_true",
        default=False,
        help="Skip the latency measurement after the status query",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the raw status JSON instead of a summary",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Strip MOTD formatting codes instead of converting to ANSI colors",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log protocol traffic to stderr",
    )
    return parser


def resolve_server(server_arg: str | None, config: AppConfig) -> ServerConfig:
    """Resolve the target server from the CLI arg or the configured default."""
    if server_arg is not None:
        # Check if it's a configured server name
        if server_arg in config.servers:
            return config.servers[server_arg]

        # Try parsing as host:port or [ipv6]:port
        if ":" in server_arg:
            host, port_str = server_arg.rsplit(":", 1)
            bracketed = host.startswith("[") and host.endswith("]")
            if bracketed:
                host = host[1:-1]
            # A bare IPv6 literal has colons in the host part and no port
            if bracketed or ":" not in host:
                try:
                    port = int(port_str)
                    return ServerConfig(name=server_arg, host=host, port=port)
                except ValueError:
                    pass

        if server_arg.startswith("[") and server_arg.endswith("]"):
            return ServerConfig(name=server_arg, host=server_arg[1:-1])

        # Treat as hostname with default port
        return ServerConfig(name=server_arg, host=server_arg)

    if config.default_server and config.default_server in config.servers:
        return config.servers[config.default_server]

    print(
        "Error: no server given and no default server configured in "
        "~/.config/mcping/config.toml",
        file=sys.stderr,
    )
    sys.exit(1)


def build_connection_config(
    server: ServerConfig, args: argparse.Namespace
) -> ConnectionConfig:
    """Combine the resolved server with any command-line overrides."""
    conn_config = ConnectionConfig(
        address=server.host,
        port=server.port,
        protocol_version=server.protocol_version,
        timeout=args.timeout,
    )
    if args.port is not None:
        conn_config = conn_config.with_port(args.port)
    if args.protocol_version is not None:
        conn_config = conn_config.with_protocol_version(args.protocol_version)
    return conn_config


def format_summary(
    status: ServerStatus, latency: float | None, *, color: bool = True
) -> str:
    """Render a status as human-readable lines."""
    version = f"Version: {status.version.name}"
    if status.version.protocol is not None:
        version += f" (protocol {status.version.protocol})"

    lines = [
        format_motd(status.description, color=color),
        version,
        f"Players: {status.players.online}/{status.players.max}",
    ]
    if status.players.sample:
        names = ", ".join(player.name for player in status.players.sample)
        lines.append(f"Online: {names}")
    if latency is not None:
        lines.append(f"Latency: {latency * 1000:.1f} ms")
    return "\n".join(lines)


def format_json(status: ServerStatus, latency: float | None) -> str:
    """Render the raw status JSON, with the measured latency added."""
    data = dict(status.raw) if status.raw else _status_to_dict(status)
    if latency is not None:
        data["latency_ms"] = round(latency * 1000, 3)
    return json.dumps(data, indent=2, ensure_ascii=False)


def _status_to_dict(status: ServerStatus) -> dict:
    data = dataclasses.asdict(status)
    data.pop("raw", None)
    return data


def main() -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    server = resolve_server(args.server, load_config())
    try:
        conn_config = build_connection_config(server, args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        with conn_config.connect() as conn:
            status = conn.status()
            latency = None if args.no_ping else conn.ping()
    except PingError as e:
        print(
            f"Failed to query {conn_config.address}:{conn_config.port}: {e}",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.json:
        print(format_json(status, latency))
    else:
        print(format_summary(status, latency, color=not args.no_color))
